"""
MongoDB Storage Backend

Implements the controller store using MongoDB for persistence.
Provides the same interface as the SQLite store for seamless switching.

Collections:
- config_versions - Append-only configuration history
- agents - Registered agent identities

The unique index on config_versions.version is what serializes concurrent
updates: when two writers race for the same next version, the second insert
fails with a duplicate key error and surfaces as VersionConflictError so the
caller can retry against the new latest record.
"""

import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from pymongo import MongoClient, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..exceptions import StoreError, VersionConflictError
from ..models import AgentIdentity, ConfigRecord
from .base import ConfigStore, ConfigTransaction


def _doc_to_config(doc: Dict) -> ConfigRecord:
    doc.pop('_id', None)
    return ConfigRecord.from_dict(doc)


def _doc_to_agent(doc: Dict) -> AgentIdentity:
    doc.pop('_id', None)
    return AgentIdentity.from_dict(doc)


class MongoDBTransaction(ConfigTransaction):
    """ConfigTransaction bound to a MongoDB client session."""

    def __init__(self, collection, session):
        self._collection = collection
        self._session = session

    def get_latest_config(self) -> Optional[ConfigRecord]:
        try:
            doc = self._collection.find_one(
                {},
                sort=[('version', DESCENDING)],
                session=self._session
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to read latest config: {e}") from e
        return _doc_to_config(doc) if doc else None

    def insert_config(self, record: ConfigRecord) -> None:
        try:
            self._collection.insert_one(record.to_dict(), session=self._session)
        except DuplicateKeyError as e:
            raise VersionConflictError(record.version) from e
        except PyMongoError as e:
            if e.has_error_label('TransientTransactionError'):
                raise VersionConflictError(record.version) from e
            raise StoreError(f"Failed to insert config version {record.version}: {e}") from e


class MongoDBConfigStore(ConfigStore):
    """
    MongoDB storage implementation.

    Indexes are created automatically on first use. Multi-document
    transactions need a replica set or mongos. For a standalone server pass
    use_transactions=False (MONGODB_USE_TRANSACTIONS=false); the unique
    version index then is what prevents two records from sharing a version.
    """

    def __init__(self, host: str = 'mongodb', port: int = 27017,
                 database: str = 'config_relay', use_transactions: bool = True):
        """
        Initialize MongoDB storage.

        Args:
            host: MongoDB host
            port: MongoDB port
            database: Database name
            use_transactions: Wrap updates in a server-side transaction
        """
        self.host = host
        self.port = port
        self.database_name = database
        self.use_transactions = use_transactions

        self.client = MongoClient(
            host=host,
            port=port,
            serverSelectionTimeoutMS=5000
        )
        self.db = self.client[database]

        self.configs_collection = self.db['config_versions']
        self.agents_collection = self.db['agents']

        self._ensure_indexes()

    def _ensure_indexes(self):
        """Create indexes for efficient queries."""
        try:
            self.configs_collection.create_index('version', unique=True)
            self.agents_collection.create_index('agent_id', unique=True)
            self.agents_collection.create_index([('registered_at', DESCENDING)])
        except PyMongoError as e:
            raise StoreError(f"Could not create indexes: {e}") from e

    def ping(self) -> bool:
        try:
            self.client.admin.command('ping')
            return True
        except PyMongoError:
            return False

    def close(self) -> None:
        self.client.close()

    # =========================================================================
    # Config Version History
    # =========================================================================

    @contextmanager
    def transaction(self) -> Iterator[ConfigTransaction]:
        try:
            session = self.client.start_session()
        except PyMongoError as e:
            raise StoreError(f"Failed to start session: {e}") from e

        with session:
            if not self.use_transactions:
                yield MongoDBTransaction(self.configs_collection, session)
                return

            try:
                session.start_transaction()
            except PyMongoError as e:
                raise StoreError(f"Failed to begin transaction: {e}") from e
            try:
                yield MongoDBTransaction(self.configs_collection, session)
            except BaseException:
                session.abort_transaction()
                raise
            try:
                session.commit_transaction()
            except PyMongoError as e:
                if e.has_error_label('TransientTransactionError'):
                    raise VersionConflictError() from e
                raise StoreError(f"Failed to commit transaction: {e}") from e

    def get_latest_config(self) -> Optional[ConfigRecord]:
        try:
            doc = self.configs_collection.find_one({}, sort=[('version', DESCENDING)])
        except PyMongoError as e:
            raise StoreError(f"Failed to read latest config: {e}") from e
        return _doc_to_config(doc) if doc else None

    def get_config_history(self, limit: int = 50) -> List[ConfigRecord]:
        try:
            cursor = self.configs_collection.find().sort('version', DESCENDING).limit(limit)
            return [_doc_to_config(doc) for doc in cursor]
        except PyMongoError as e:
            raise StoreError(f"Failed to read config history: {e}") from e

    # =========================================================================
    # Agent Operations
    # =========================================================================

    def create_agent(self, name: str) -> AgentIdentity:
        agent = AgentIdentity(agent_id=str(uuid.uuid4()), name=name)
        try:
            self.agents_collection.insert_one(agent.to_dict())
        except PyMongoError as e:
            raise StoreError(f"Failed to create agent '{name}': {e}") from e
        return agent

    def get_agent(self, agent_id: str) -> Optional[AgentIdentity]:
        try:
            doc = self.agents_collection.find_one({'agent_id': agent_id})
        except PyMongoError as e:
            raise StoreError(f"Failed to read agent {agent_id}: {e}") from e
        return _doc_to_agent(doc) if doc else None

    def get_all_agents(self) -> List[AgentIdentity]:
        try:
            cursor = self.agents_collection.find().sort('registered_at', DESCENDING)
            return [_doc_to_agent(doc) for doc in cursor]
        except PyMongoError as e:
            raise StoreError(f"Failed to list agents: {e}") from e
