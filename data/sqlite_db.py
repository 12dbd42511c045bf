"""
SQLite implementation of SessionCacheInterface.

Catalogs and selection snapshots are stored as JSON text columns. The
schema is created on initialization.
"""

import json
import sqlite3
import logging
from pathlib import Path
from typing import List, Optional, Dict, Any, Union

from .interface import SessionCacheInterface
from . import queries as Q
from domain.exceptions import CacheError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class SQLiteSessionCache(SessionCacheInterface):
    """
    SQLite implementation of SessionCacheInterface.

    Features:
    - Schema created on initialization
    - row_factory for dict conversion
    - JSON columns for catalogs and snapshots
    - ":memory:" path for tests
    """

    def __init__(self, db_path: Union[Path, str]):
        """
        Initialize SQLite session cache.

        Args:
            db_path: Path to SQLite file (created if not exists) or ":memory:"

        Raises:
            CacheError: If the database cannot be opened
        """
        if str(db_path) == MEMORY:
            self.db_path = MEMORY
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.executescript(Q.CREATE_SCHEMA)
            self.conn.commit()
        except sqlite3.Error as e:
            raise CacheError(f"Failed to open session cache: {e}", details={"path": str(db_path)})

        logger.info(f"SQLite session cache initialized at {self.db_path}")

    def _execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run a statement, wrapping sqlite errors in CacheError."""
        if self.conn is None:
            raise CacheError("Session cache is closed")
        try:
            cursor = self.conn.cursor()
            cursor.execute(query, params)
            return cursor
        except sqlite3.Error as e:
            raise CacheError(f"Session cache query failed: {e}")

    def _commit(self):
        if self.conn is None:
            raise CacheError("Session cache is closed")
        try:
            self.conn.commit()
        except sqlite3.Error as e:
            raise CacheError(f"Session cache commit failed: {e}")

    @staticmethod
    def _dumps(value: Any) -> str:
        try:
            return json.dumps(value)
        except (TypeError, ValueError) as e:
            raise CacheError(f"Value is not JSON-serializable: {e}")

    @staticmethod
    def _loads(text: Optional[str]) -> Any:
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            raise CacheError(f"Corrupt cache entry: {e}")

    # ==================== Product Extractions ====================

    def save_product_extractions(
        self,
        product_id: str,
        extractions: List[Dict[str, Any]],
        product_name: Optional[str] = None,
    ) -> bool:
        """Save or replace a product's raw extraction list."""
        self._execute(
            Q.UPSERT_PRODUCT_EXTRACTIONS,
            (str(product_id), product_name, self._dumps(list(extractions))),
        )
        self._commit()
        logger.debug(f"Cached {len(extractions)} extraction(s) for product {product_id}")
        return True

    def get_product_extractions(self, product_id: str) -> Optional[List[Dict[str, Any]]]:
        """Get a product's raw extraction list."""
        row = self._execute(Q.SELECT_PRODUCT_EXTRACTIONS, (str(product_id),)).fetchone()
        if row is None:
            return None
        return self._loads(row["extractions_json"])

    def list_product_extractions(self) -> List[Dict[str, Any]]:
        """List all cached products."""
        rows = self._execute(Q.SELECT_ALL_PRODUCT_EXTRACTIONS).fetchall()
        return [
            {
                "product_id": row["product_id"],
                "product_name": row["product_name"],
                "extractions": self._loads(row["extractions_json"]),
                "updated_at": row["updated_at"],
            }
            for row in rows
        ]

    def delete_product_extractions(self, product_id: str) -> bool:
        """Delete a cached product."""
        cursor = self._execute(Q.DELETE_PRODUCT_EXTRACTIONS, (str(product_id),))
        self._commit()
        return cursor.rowcount > 0

    def save_default_extraction_types(self, product_id: str, default_types: List[str]) -> bool:
        """Save default extraction type names for a product."""
        payload = self._dumps(list(default_types))
        cursor = self._execute(Q.UPDATE_DEFAULT_TYPES, (payload, str(product_id)))
        if cursor.rowcount == 0:
            self._execute(Q.INSERT_DEFAULT_TYPES_ONLY, (str(product_id), payload))
        self._commit()
        return True

    def get_default_extraction_types(self, product_id: str) -> List[str]:
        """Get default extraction type names for a product."""
        row = self._execute(Q.SELECT_DEFAULT_TYPES, (str(product_id),)).fetchone()
        if row is None:
            return []
        return self._loads(row["default_types_json"]) or []

    # ==================== Selection State ====================

    def save_selection_state(self, session_id: str, state: Dict[str, Any]) -> bool:
        """Save a selection store snapshot."""
        self._execute(Q.UPSERT_SELECTION_STATE, (session_id, self._dumps(state)))
        self._commit()
        logger.debug(f"Saved selection state for session {session_id}")
        return True

    def load_selection_state(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Load a selection store snapshot."""
        row = self._execute(Q.SELECT_SELECTION_STATE, (session_id,)).fetchone()
        if row is None:
            return None
        return self._loads(row["state_json"])

    def clear_selection_state(self, session_id: str) -> bool:
        """Delete a session's snapshot."""
        cursor = self._execute(Q.DELETE_SELECTION_STATE, (session_id,))
        self._commit()
        return cursor.rowcount > 0

    # ==================== Lifecycle ====================

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Session cache connection closed")
