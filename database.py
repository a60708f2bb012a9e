"""
MongoDB access

One `Database` handle is created per application and stored on
`app.state.database`. Routes receive it through the `get_database`
dependency, which connects on first use.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import Request
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """The store could not be reached. Not recoverable inside a request."""


class Database:
    def __init__(self, url: str, name: str, client: Optional[MongoClient] = None, timeout_ms: int = 5000):
        self.url = url
        self.name = name
        self.timeout_ms = timeout_ms
        self._client = client
        self._db = None

    @property
    def connected(self) -> bool:
        return self._db is not None

    def connect(self):
        if self._db is not None:
            return self._db
        try:
            if self._client is None:
                self._client = MongoClient(self.url, serverSelectionTimeoutMS=self.timeout_ms)
            self._client.admin.command("ping")
            db = self._client[self.name]
            db["user"].create_index("email", unique=True)
        except PyMongoError as e:
            logger.critical("Cannot connect to database %s: %s", self.name, e)
            raise DatabaseError(str(e)) from e
        self._db = db
        logger.info("Connected to database %s", self.name)
        return self._db

    def disconnect(self):
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._db = None
        logger.info("Disconnected from database %s", self.name)

    def collection(self, name: str):
        return self.connect()[name]

    def create_document(self, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True, exclude_none=True)
        result = self.collection(collection_name).insert_one(dict(data))
        return str(result.inserted_id)

    def get_documents(self, collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None) -> List[dict]:
        cursor = self.collection(collection_name).find(filter_dict or {})
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)


def get_database(request: Request) -> Database:
    database = request.app.state.database
    database.connect()
    return database
