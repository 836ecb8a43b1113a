"""Core auction house components: registry, bidding, settlement, storage"""
