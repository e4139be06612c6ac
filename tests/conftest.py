import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

# Settings are read at import time
_TEST_DB_DIR = tempfile.mkdtemp(prefix="blog-backend-tests-")
os.environ.setdefault("DATABASE_URL_OVERRIDE", f"sqlite:///{Path(_TEST_DB_DIR) / 'app.db'}")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("CLOUDFRONT_DISTRIBUTION_ID", "")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import RemoteStoreError
from app.database import init_db
from app.models.file import FileRecord
from app.services.blob_store_service import BatchDeleteResult, DeleteError

NOW = datetime(2026, 3, 10, 3, 0, 0)


class FakeBlobStore:
    """In-memory blob store recording every call"""

    def __init__(self):
        self.objects = {}
        self.delete_calls = []
        self.fail_keys = set()
        self.fail_batches = set()  # 1-based call numbers that raise

    def put(self, key, content, content_type):
        self.objects[key] = (content, content_type)

    def batch_delete(self, keys):
        self.delete_calls.append(list(keys))
        if len(self.delete_calls) in self.fail_batches:
            raise RemoteStoreError("batch_delete", "ServiceUnavailable: try again")

        result = BatchDeleteResult()
        for key in keys:
            if key in self.fail_keys:
                result.errors.append(DeleteError(key=key, code="AccessDenied", message="Access Denied"))
            else:
                self.objects.pop(key, None)
                result.deleted_keys.append(key)
        return result

    def presigned_get(self, key, ttl_minutes):
        return f"https://signed.example.com/{key}?ttl={ttl_minutes}"

    def exists(self, key):
        return key in self.objects

    def public_url(self, key):
        return f"https://cdn.example.com/{key}"


class FakeCdn:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def invalidate(self, paths):
        self.calls.append(list(paths))
        if self.fail:
            raise RemoteStoreError("invalidate", "Throttling")
        return f"I{len(self.calls)}"


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False}
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def cdn():
    return FakeCdn()


@pytest.fixture
def make_file(db):
    """Insert a file row created `age_hours` before NOW"""
    counter = {"n": 0}

    def _make(age_hours=25, name=None):
        counter["n"] += 1
        n = counter["n"]
        record = FileRecord(
            original_name=name or f"file-{n}.png",
            storage_key=f"public/images/2026/03/09/file-{n}.png",
            content_type="image/png",
            size=1024,
            created_at=NOW - timedelta(hours=age_hours),
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _make
