"""Pytest fixtures for the records core.

Provides reusable test fixtures for:
- In-memory SQLite database with all records tables
- In-memory object storage implementing ObjectStoragePort
- A frozen, manually advanced clock
- Document, classification and retention policy factories

Usage:
    async def test_check_in(checkout_manager, document_factory, user_id):
        document = document_factory()
        ...
"""

import hashlib
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Dict, Optional
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from checkout.manager import CheckoutManager
from config import get_settings
from domain.documents.document_state import DocumentState
from domain.documents.ports.object_storage_port import ObjectStoragePort, StoredFile
from lifecycle.rules import TransitionRuleTable
from lifecycle.state_machine import LifecycleStateMachine
from models import Base
from models.classification import Classification
from models.document import Document, DocumentMetadata
from models.retention import RetentionBasis, RetentionPolicy, RetentionTriggerEvent
from retention.engine import RetentionEngine
from versions.chain import VersionChain


PDF_BYTES = b"%PDF-1.7\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF"
TEXT_BYTES = b"Quarterly report, first draft\n"


class FrozenClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryStorage(ObjectStoragePort):
    """ObjectStoragePort double keeping blobs in a dict."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.deleted = []

    async def save(self, stream: BinaryIO, logical_key: str) -> StoredFile:
        content = stream.read()
        if not content:
            raise ValueError("Cannot store empty file")
        self.blobs[logical_key] = content
        return StoredFile(
            storage_path=logical_key,
            content_hash=hashlib.sha256(content).hexdigest(),
            hash_algorithm="SHA256",
            size_bytes=len(content),
        )

    async def get(self, storage_path: str) -> Optional[BinaryIO]:
        if storage_path not in self.blobs:
            return None
        return BytesIO(self.blobs[storage_path])

    async def delete(self, storage_path: str) -> bool:
        if storage_path not in self.blobs:
            return False
        del self.blobs[storage_path]
        self.deleted.append(storage_path)
        return True


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every session of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def settings_env(monkeypatch):
    """Set environment variables read by get_settings() for one test.

    Usage:
        settings_env(STALE_CHECKOUT_HOURS="8")
    """

    def _set(**values: str) -> None:
        for key, value in values.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield _set
    get_settings.cache_clear()


@pytest.fixture
def db_session(engine) -> Session:
    session = Session(bind=engine)
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 1, 15, 9, 30, 0))


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def user_id() -> UUID:
    return UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def other_user_id() -> UUID:
    return UUID("22222222-2222-2222-2222-222222222222")


@pytest.fixture
def version_chain(db_session, storage, clock) -> VersionChain:
    return VersionChain(db_session, storage=storage, clock=clock)


@pytest.fixture
def checkout_manager(db_session, storage, version_chain, clock) -> CheckoutManager:
    return CheckoutManager(db_session, storage, versions=version_chain, clock=clock)


@pytest.fixture
def state_machine(db_session, storage, clock) -> LifecycleStateMachine:
    return LifecycleStateMachine(db_session, rules=TransitionRuleTable.default(), storage=storage, clock=clock)


@pytest.fixture
def retention_engine(db_session, clock) -> RetentionEngine:
    return RetentionEngine(db_session, clock=clock)


@pytest.fixture
def document_factory(db_session, storage, version_chain, clock, user_id):
    """Create a document with published content and version 1.0.

    Usage:
        document = document_factory(name="Contract", metadata={"Amount": Decimal("10")})
    """

    def _create(
        name: str = "Report.txt",
        content: bytes = TEXT_BYTES,
        state: DocumentState = DocumentState.ACTIVE,
        metadata: Optional[Dict[str, object]] = None,
        **overrides,
    ) -> Document:
        document_id = uuid4()
        key = f"documents/{document_id}/v1/{name}"
        storage.blobs[key] = content
        document = Document(
            id=document_id,
            name=name,
            extension=Path(name).suffix.lower() or None,
            content_type="text/plain",
            storage_path=key,
            size=len(content),
            integrity_hash=hashlib.sha256(content).hexdigest(),
            hash_algorithm="SHA256",
            state=state,
            created_by=user_id,
            created_at=clock(),
            **overrides,
        )
        db_session.add(document)
        db_session.flush()

        for field_name, value in (metadata or {}).items():
            row = DocumentMetadata(document_id=document.id, field_id=uuid4(), field_name=field_name)
            if isinstance(value, Decimal):
                row.numeric_value = value
            elif isinstance(value, datetime):
                row.date_value = value
            else:
                row.value = value
            db_session.add(row)
        db_session.flush()

        result = version_chain.mint_initial_version(document.id, user_id)
        assert result.success, result.error
        return document

    return _create


@pytest.fixture
def policy_factory(db_session, clock):
    """Create a retention policy, optionally with trigger definitions."""

    def _create(
        retention_days: int = 30,
        basis: RetentionBasis = RetentionBasis.CREATION,
        triggers=(),
        **overrides,
    ) -> RetentionPolicy:
        policy = RetentionPolicy(
            name=overrides.pop("name", f"{retention_days} day policy"),
            retention_days=retention_days,
            retention_basis=basis,
            created_at=clock(),
            **overrides,
        )
        db_session.add(policy)
        db_session.flush()
        for trigger_type in triggers:
            db_session.add(RetentionTriggerEvent(
                policy_id=policy.id,
                name=f"{trigger_type.value} trigger",
                trigger_type=trigger_type,
            ))
        db_session.flush()
        return policy

    return _create


@pytest.fixture
def classification_factory(db_session):
    """Create a classification node."""

    def _create(
        code: str,
        parent: Optional[Classification] = None,
        default_policy: Optional[RetentionPolicy] = None,
    ) -> Classification:
        node = Classification(
            code=code,
            name=code,
            parent_id=parent.id if parent is not None else None,
            default_retention_policy_id=default_policy.id if default_policy is not None else None,
        )
        db_session.add(node)
        db_session.flush()
        return node

    return _create
