import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def pytest_collection_modifyitems(config, items):
    if os.getenv("TEST_DB_DSN"):
        return

    skip_marker = pytest.mark.skip(
        reason="Set TEST_DB_DSN to a PostgreSQL database with pgvector to run store integration tests"
    )
    for item in items:
        if "requires_postgres" in item.keywords:
            item.add_marker(skip_marker)


class FakeConnection:
    """Records statements; returns canned results or raises a canned error."""

    def __init__(self, status: str = "", rows: Optional[List[Dict[str, Any]]] = None, exc: Optional[BaseException] = None):
        self.status = status
        self.rows = rows or []
        self.exc = exc
        self.calls: List[Tuple[str, str, Tuple[Any, ...]]] = []
        self.transactions = 0

    async def execute(self, sql: str, *params: Any) -> str:
        self.calls.append(("execute", sql, params))
        if self.exc is not None:
            raise self.exc
        return self.status

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        self.calls.append(("fetch", sql, params))
        if self.exc is not None:
            raise self.exc
        return list(self.rows)

    def transaction(self):
        connection = self

        class _Transaction:
            async def __aenter__(self):
                connection.transactions += 1
                return self

            async def __aexit__(self, exc_type, exc, tb):
                return False

        return _Transaction()


class FakePool:
    def __init__(self, conn: Optional[FakeConnection] = None, acquire_exc: Optional[BaseException] = None):
        self.conn = conn or FakeConnection()
        self.acquire_exc = acquire_exc
        self.acquired = 0

    def acquire(self):
        pool = self

        class _Acquire:
            async def __aenter__(self):
                if pool.acquire_exc is not None:
                    raise pool.acquire_exc
                pool.acquired += 1
                return pool.conn

            async def __aexit__(self, exc_type, exc, tb):
                return False

        return _Acquire()


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def fake_pool(fake_conn):
    return FakePool(fake_conn)
