"""
Database Helper Functions

A small MongoDB client wrapper that the API receives at startup.
It owns the connection lifecycle (connect / close / ping) and exposes
the CRUD helpers used by the endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.server_api import ServerApi

logger = logging.getLogger(__name__)

FOODS = "foods"
PRODUCTS = "products"
ORDERS = "orders"
REVIEWS = "reviews"
PAYMENTS = "payments"

COLLECTIONS = [FOODS, PRODUCTS, ORDERS, REVIEWS, PAYMENTS]


class DatabaseUnavailable(Exception):
    pass


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


class Database:
    def __init__(self, url: Optional[str] = None, name: str = "canteen", client: Optional[MongoClient] = None, timeout_ms: int = 5000):
        self.url = url
        self.name = name
        self.timeout_ms = timeout_ms
        self._client = client
        self.db = None

    @property
    def connected(self) -> bool:
        return self.db is not None

    def connect(self, strict: bool = False) -> bool:
        """Bind the database and ping the server.

        A failed client setup or ping is logged and requests then fail one
        by one. With ``strict`` the failure is raised instead.
        """
        if self._client is None and not self.url:
            message = "Database not available. Check DATABASE_URL and DATABASE_NAME environment variables."
            logger.warning(message)
            if strict:
                raise DatabaseUnavailable(message)
            return False
        try:
            if self._client is None:
                # SRV URIs are resolved here, so DNS errors surface from the constructor
                self._client = MongoClient(
                    self.url,
                    server_api=ServerApi("1", strict=True, deprecation_errors=True),
                    serverSelectionTimeoutMS=self.timeout_ms,
                    tz_aware=True,
                )
            self.db = self._client[self.name]
            self._client.admin.command("ping")
        except Exception as e:
            logger.error("MongoDB Error: %s", e)
            if strict:
                raise DatabaseUnavailable(f"Could not connect to MongoDB: {e}") from e
            return False
        logger.info("MongoDB connected successfully (database=%s)", self.name)
        return True

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self.db = None

    def ping(self) -> bool:
        if self.db is None:
            return False
        try:
            self._client.admin.command("ping")
            return True
        except Exception as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    def list_collections(self) -> List[str]:
        self._ensure_db()
        return self.db.list_collection_names()

    def _ensure_db(self):
        if self.db is None:
            raise DatabaseUnavailable("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    # CRUD helpers

    def create_document(self, collection_name: str, data: Union[BaseModel, dict], timestamp: bool = False) -> dict:
        self._ensure_db()
        payload = _to_dict(data)
        payload.pop("_id", None)
        if timestamp:
            payload["createdAt"] = utc_now()
        # insert_one sets payload["_id"]
        self.db[collection_name].insert_one(payload)
        return serialize_doc(payload)

    def get_documents(self, collection_name: str, filter_dict: Optional[dict] = None, sort: Optional[list] = None, limit: Optional[int] = None) -> List[dict]:
        self._ensure_db()
        cursor = self.db[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(int(limit))
        return [serialize_doc(doc) for doc in cursor]

    def get_document_by_id(self, collection_name: str, _id: str) -> Optional[dict]:
        # ObjectId() raises bson.errors.InvalidId for malformed ids
        self._ensure_db()
        doc = self.db[collection_name].find_one({"_id": ObjectId(_id)})
        return serialize_doc(doc)

    def update_document(self, collection_name: str, _id: str, update_data: Union[BaseModel, Dict[str, Any]]) -> bool:
        self._ensure_db()
        result = self.db[collection_name].update_one({"_id": ObjectId(_id)}, {"$set": _to_dict(update_data)})
        return result.matched_count > 0

    def delete_document(self, collection_name: str, _id: str) -> bool:
        self._ensure_db()
        result = self.db[collection_name].delete_one({"_id": ObjectId(_id)})
        return result.deleted_count > 0


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    for key, value in d.items():
        # stored datetimes are UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            d[key] = value.replace(tzinfo=timezone.utc)
    return d
