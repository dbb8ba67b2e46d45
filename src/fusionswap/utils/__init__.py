"""Utility modules for fusionswap."""

from fusionswap.utils.locks import LockTimeoutError, ObjectLock, get_object_lock

__all__ = ["LockTimeoutError", "ObjectLock", "get_object_lock"]
