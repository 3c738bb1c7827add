"""
Unit tests for the controller storage backends.

Tests the SQLite store against a temporary database file and the MongoDB
store with a patched MongoClient.
"""

import os
import sys
import shutil
import sqlite3
import tempfile
import unittest
from unittest.mock import MagicMock, patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pymongo.errors import DuplicateKeyError, OperationFailure

from controller.exceptions import StoreError, VersionConflictError
from controller.models import ConfigRecord
from controller.storage import get_storage_backend
from controller.storage.mongodb import MongoDBConfigStore
from controller.storage.sqlite import SQLiteConfigStore
from controller.config import ControllerConfig


class TestSQLiteConfigStore(unittest.TestCase):
    """Test the SQLite store."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.test_dir, 'data', 'controller.db')
        self.store = SQLiteConfigStore(db_path=self.db_path)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_creates_database_directory(self):
        """The parent directory and schema are created on init."""
        self.assertTrue(os.path.exists(self.db_path))
        self.assertTrue(self.store.ping())

    def test_empty_store(self):
        """A fresh store has no config and no agents."""
        self.assertIsNone(self.store.get_latest_config())
        self.assertEqual(self.store.get_config_history(), [])
        self.assertEqual(self.store.get_all_agents(), [])

    def test_transaction_commit(self):
        """Records inserted in a transaction are visible after commit."""
        with self.store.transaction() as tx:
            self.assertIsNone(tx.get_latest_config())
            tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=1))

        latest = self.store.get_latest_config()
        self.assertEqual(latest.url, 'http://a')
        self.assertEqual(latest.version, 1)

    def test_transaction_rollback_on_error(self):
        """An exception inside the transaction discards its writes."""
        with self.assertRaises(RuntimeError):
            with self.store.transaction() as tx:
                tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=1))
                raise RuntimeError('boom')

        self.assertIsNone(self.store.get_latest_config())

    def test_duplicate_version_raises_conflict(self):
        """The UNIQUE version column turns a duplicate into VersionConflictError."""
        with self.store.transaction() as tx:
            tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=1))

        with self.assertRaises(VersionConflictError) as ctx:
            with self.store.transaction() as tx:
                tx.insert_config(ConfigRecord(url='http://b', poll_interval=5, version=1))

        self.assertEqual(ctx.exception.version, 1)
        self.assertEqual(self.store.get_latest_config().url, 'http://a')

    def test_history_order_and_limit(self):
        """History is newest first and limited."""
        for version in range(1, 6):
            with self.store.transaction() as tx:
                tx.insert_config(ConfigRecord(url=f'http://{version}', poll_interval=5, version=version))

        history = self.store.get_config_history(limit=2)
        self.assertEqual([r.version for r in history], [5, 4])

    def test_created_at_round_trips(self):
        """Stored records keep their creation timestamp."""
        record = ConfigRecord(url='http://a', poll_interval=5, version=1,
                              created_at='2024-01-01T00:00:00')
        with self.store.transaction() as tx:
            tx.insert_config(record)

        self.assertEqual(self.store.get_latest_config().created_at, '2024-01-01T00:00:00')

    def test_agents(self):
        """Agents are created with unique IDs and can be read back."""
        agent = self.store.create_agent('agent-one')

        self.assertEqual(self.store.get_agent(agent.agent_id).name, 'agent-one')
        self.assertIsNone(self.store.get_agent('unknown'))
        self.assertEqual(len(self.store.get_all_agents()), 1)

    def test_unreadable_database_raises_store_error(self):
        """Low-level sqlite errors surface as StoreError."""
        with patch.object(self.store, '_connect', side_effect=sqlite3.OperationalError('locked')):
            with self.assertRaises(StoreError):
                self.store.get_latest_config()
            self.assertFalse(self.store.ping())


class TestMongoDBConfigStore(unittest.TestCase):
    """Test the MongoDB store with a mocked client."""

    def setUp(self):
        """Patch MongoClient and build the store."""
        patcher = patch('controller.storage.mongodb.MongoClient')
        self.mock_client_cls = patcher.start()
        self.addCleanup(patcher.stop)

        self.client = self.mock_client_cls.return_value
        self.store = MongoDBConfigStore(host='mongo', port=27017, database='test_db')

        self.configs = MagicMock()
        self.agents = MagicMock()
        self.store.configs_collection = self.configs
        self.store.agents_collection = self.agents

        self.session = MagicMock()
        self.client.start_session.return_value = self.session

    def test_client_settings(self):
        """The client is created for the configured host and port."""
        kwargs = self.mock_client_cls.call_args[1]
        self.assertEqual(kwargs['host'], 'mongo')
        self.assertEqual(kwargs['port'], 27017)

    def test_latest_config(self):
        """The newest document is converted to a ConfigRecord."""
        self.configs.find_one.return_value = {
            '_id': 'abc', 'url': 'http://a', 'poll_interval': 5, 'version': 3,
            'created_at': '2024-01-01T00:00:00'
        }

        record = self.store.get_latest_config()

        self.assertEqual(record.version, 3)
        self.assertEqual(record.url, 'http://a')

    def test_latest_config_empty(self):
        """No document means no config."""
        self.configs.find_one.return_value = None
        self.assertIsNone(self.store.get_latest_config())

    def test_transaction_commits(self):
        """Inserts run inside the session and are committed."""
        self.configs.find_one.return_value = None

        with self.store.transaction() as tx:
            self.assertIsNone(tx.get_latest_config())
            tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=1))

        self.session.start_transaction.assert_called_once()
        self.session.commit_transaction.assert_called_once()
        self.session.abort_transaction.assert_not_called()
        self.assertIs(self.configs.insert_one.call_args[1]['session'], self.session)

    def test_duplicate_key_aborts_with_conflict(self):
        """A duplicate version aborts the transaction as a conflict."""
        self.configs.insert_one.side_effect = DuplicateKeyError('dup')

        with self.assertRaises(VersionConflictError):
            with self.store.transaction() as tx:
                tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=2))

        self.session.abort_transaction.assert_called_once()
        self.session.commit_transaction.assert_not_called()

    def test_transient_commit_error_is_conflict(self):
        """A transient commit failure can be retried by the caller."""
        error = OperationFailure(
            'write conflict', details={'errorLabels': ['TransientTransactionError']}
        )
        self.session.commit_transaction.side_effect = error

        with self.assertRaises(VersionConflictError):
            with self.store.transaction() as tx:
                tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=2))

    def test_other_commit_error_is_store_error(self):
        """Other commit failures are plain store errors."""
        self.session.commit_transaction.side_effect = OperationFailure('no replica set')

        with self.assertRaises(StoreError) as ctx:
            with self.store.transaction() as tx:
                tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=2))

        self.assertNotIsInstance(ctx.exception, VersionConflictError)

    def test_without_transactions(self):
        """Standalone servers skip start/commit but keep the session."""
        self.store.use_transactions = False

        with self.store.transaction() as tx:
            tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=1))

        self.session.start_transaction.assert_not_called()
        self.session.commit_transaction.assert_not_called()
        self.configs.insert_one.assert_called_once()

    def test_create_agent(self):
        """Agents are inserted with a generated ID."""
        agent = self.store.create_agent('agent-one')

        doc = self.agents.insert_one.call_args[0][0]
        self.assertEqual(doc['agent_id'], agent.agent_id)
        self.assertEqual(doc['name'], 'agent-one')


class TestStorageFactory(unittest.TestCase):
    """Test backend selection."""

    def test_sqlite_default(self):
        """sqlite is the default backend."""
        test_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, test_dir, True)

        config = ControllerConfig(db_path=os.path.join(test_dir, 'c.db'))
        self.assertIsInstance(get_storage_backend(config), SQLiteConfigStore)

    @patch('controller.storage.mongodb.MongoClient')
    def test_mongodb(self, mock_client):
        """STORAGE_BACKEND=mongodb selects MongoDB."""
        config = ControllerConfig(storage_backend='mongodb', mongodb_host='db')
        store = get_storage_backend(config)

        self.assertIsInstance(store, MongoDBConfigStore)
        self.assertEqual(mock_client.call_args[1]['host'], 'db')

    @patch('controller.storage.mongodb.MongoClient')
    def test_mongodb_without_transactions(self, mock_client):
        """A standalone mongod is served without session transactions."""
        config = ControllerConfig(storage_backend='mongodb', mongodb_use_transactions=False)
        store = get_storage_backend(config)
        self.assertFalse(store.use_transactions)

        store.configs_collection = MagicMock()
        store.configs_collection.find_one.return_value = None
        session = mock_client.return_value.start_session.return_value

        with store.transaction() as tx:
            tx.insert_config(ConfigRecord(url='http://a', poll_interval=5, version=1))

        session.start_transaction.assert_not_called()
        store.configs_collection.insert_one.assert_called_once()

    @patch('controller.storage.mongodb.MongoClient')
    def test_mongodb_transactions_by_default(self, mock_client):
        config = ControllerConfig(storage_backend='mongodb')
        self.assertTrue(get_storage_backend(config).use_transactions)


if __name__ == '__main__':
    unittest.main()
