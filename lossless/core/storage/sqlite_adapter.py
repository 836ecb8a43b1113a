import json
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from lossless.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    Provides:
    1. Auction records, one row per auction id.
    2. Event log, append-only and ordered.
    3. House metadata (identifier counter).

    Token amounts are unbounded integers and are stored as decimal text.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            # WAL lets readers (CLI history) run beside the writer
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auctions (
                    auction_id INTEGER PRIMARY KEY,
                    seller BLOB NOT NULL,
                    asset BLOB NOT NULL,
                    starting_bid TEXT NOT NULL,
                    end_time INTEGER NOT NULL,
                    created_at INTEGER NOT NULL,
                    current_bid TEXT NOT NULL,
                    current_bidder BLOB,
                    active INTEGER NOT NULL,
                    escrow TEXT NOT NULL,
                    bid_count INTEGER NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    auction_id INTEGER NOT NULL,
                    kind TEXT NOT NULL,
                    payload TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_auction ON events(auction_id);")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS house_state (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

    def close(self):
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn

    # =========================================================================
    # House State Operations
    # =========================================================================

    def get_meta(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT value FROM house_state WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row['value'] if row else None

    # =========================================================================
    # Auction Operations
    # =========================================================================

    @staticmethod
    def _auction_params(row: Tuple) -> Tuple:
        (auction_id, seller, asset, starting_bid, end_time, created_at,
         current_bid, current_bidder, active, escrow, bid_count) = row
        return (
            auction_id, seller, asset, str(starting_bid), end_time, created_at,
            str(current_bid), current_bidder, int(active), str(escrow), bid_count,
        )

    def get_auction(self, auction_id: int) -> Optional[Tuple]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM auctions WHERE auction_id = ?", (auction_id,))
        row = cursor.fetchone()
        return self._decode_auction(row) if row else None

    def get_all_auctions(self) -> List[Tuple]:
        """Get all auction rows ordered by id."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM auctions ORDER BY auction_id ASC")
        return [self._decode_auction(row) for row in cursor]

    @staticmethod
    def _decode_auction(row: sqlite3.Row) -> Tuple:
        return (
            row['auction_id'],
            bytes(row['seller']),
            bytes(row['asset']),
            int(row['starting_bid']),
            row['end_time'],
            row['created_at'],
            int(row['current_bid']),
            bytes(row['current_bidder']) if row['current_bidder'] is not None else None,
            bool(row['active']),
            int(row['escrow']),
            row['bid_count'],
        )

    # =========================================================================
    # Event Operations
    # =========================================================================

    def get_events(self, auction_id: Optional[int] = None) -> List[dict]:
        """Get event payloads in emission order."""
        conn = self._get_conn()
        if auction_id is None:
            cursor = conn.execute("SELECT payload FROM events ORDER BY seq ASC")
        else:
            cursor = conn.execute(
                "SELECT payload FROM events WHERE auction_id = ? ORDER BY seq ASC",
                (auction_id,)
            )
        return [json.loads(row['payload']) for row in cursor]

    # =========================================================================
    # Atomic Updates
    # =========================================================================

    def persist_auction_update(
        self,
        auction_rows: Sequence[Tuple],
        events: Sequence[Tuple[int, str, dict]],
        meta: Sequence[Tuple[str, str]] = (),
    ):
        """
        Atomically write the outcome of one house operation.

        Args:
            auction_rows: Full auction rows to upsert
            events: (auction_id, kind, payload) to append
            meta: (key, value) house state entries to upsert
        """
        conn = self._get_conn()
        with conn:
            for row in auction_rows:
                conn.execute(
                    "INSERT OR REPLACE INTO auctions VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    self._auction_params(row)
                )

            for auction_id, kind, payload in events:
                conn.execute(
                    "INSERT INTO events (auction_id, kind, payload) VALUES (?, ?, ?)",
                    (auction_id, kind, json.dumps(payload, sort_keys=True))
                )

            for key, value in meta:
                conn.execute("INSERT OR REPLACE INTO house_state (key, value) VALUES (?, ?)", (key, value))
