"""
Structured store capability over a Motor collection.

Every record is addressed by an owner key (``key_field``) instead of the
Mongo ``_id``.  Store failures are converted to ``StoreUnavailableError`` at
this boundary so callers only ever see the error taxonomy in
``helperhub.utils.exceptions``.
"""
import uuid
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument

from helperhub.services.db import to_dict
from helperhub.utils.exceptions import ExceptionContext
from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)


class DocumentStore:
    """read / write / merge / append over one collection"""

    def __init__(self, collection, key_field: str = "user_id"):
        self.collection = collection
        self.key_field = key_field

    @property
    def name(self) -> str:
        return getattr(self.collection, "name", "unknown")

    def _context(self, operation: str, failure_message: str = None):
        return ExceptionContext(
            operation, logger, failure_message=failure_message, collection=self.name
        )

    async def read(self, key: str) -> Optional[Dict[str, Any]]:
        with self._context("read"):
            doc = await self.collection.find_one({self.key_field: key})
        return to_dict(doc)

    async def exists(self, key: str) -> bool:
        return await self.read(key) is not None

    async def write(self, key: str, value: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the whole record stored under ``key``."""
        doc = {**value, self.key_field: key}
        with self._context("write"):
            await self.collection.replace_one({self.key_field: key}, doc, upsert=True)
        return doc

    async def merge(self, key: str, partial: Dict[str, Any]) -> None:
        """Set only the given fields, creating the record if needed."""
        with self._context("merge"):
            await self.collection.update_one(
                {self.key_field: key},
                {"$set": {**partial, self.key_field: key}},
                upsert=True,
            )

    async def append(self, value: Dict[str, Any]) -> str:
        """Insert a new record under a generated key and return that key."""
        new_id = str(uuid.uuid4())
        with self._context("append"):
            await self.collection.insert_one({**value, self.key_field: new_id})
        return new_id

    async def find(
        self,
        query: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        failure_message: str = None,
    ) -> List[Dict[str, Any]]:
        with self._context("find", failure_message):
            cursor = self.collection.find(query)
            if sort:
                cursor = cursor.sort(sort)
            docs = await cursor.to_list(length=None)
        return [to_dict(d) for d in docs]

    async def update_where(self, query: Dict[str, Any], changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Conditionally set fields; returns the updated record or None when nothing matched."""
        with self._context("update_where"):
            doc = await self.collection.find_one_and_update(
                query,
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        return to_dict(doc)

    async def delete(self, key: str) -> None:
        with self._context("delete"):
            await self.collection.delete_one({self.key_field: key})
