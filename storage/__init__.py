from storage.storage_interface import StorageError, StorageInterface
from storage.json_store import JsonStore
from storage.sql_store import GoalRecord, SqlStore

__all__ = [
    'StorageError',
    'StorageInterface',
    'JsonStore',
    'GoalRecord',
    'SqlStore'
]
