from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import settings

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def get_db() -> Database:
    """FastAPI dependency returning the shared database handle.

    The client is created lazily; pymongo does not connect until the first
    operation, so importing the app never requires a running server.
    """
    global _client, _db
    if _db is None:
        _client = MongoClient(settings.DATABASE_URL, serverSelectionTimeoutMS=5000)
        _db = _client[settings.DATABASE_NAME]
    return _db


def close_db() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def ensure_indexes(db: Database) -> None:
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["user"].create_index([("role", ASCENDING)])
    db["user"].create_index([("created_at", DESCENDING)])
    db["product"].create_index([("category", ASCENDING)])
    db["order"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])


def utcnow() -> datetime:
    # pymongo hands back naive UTC datetimes, so store them the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)


def oid_str(oid) -> str:
    return str(oid) if isinstance(oid, ObjectId) else oid


def parse_object_id(value: str, detail: str = "Not found") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=404, detail=detail)


def doc_to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = oid_str(doc.pop("_id"))
    # hide sensitive fields
    doc.pop("password_hash", None)
    return doc


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    now = utcnow()
    result = db[collection_name].insert_one({**data, "created_at": now, "updated_at": now})
    return str(result.inserted_id)
