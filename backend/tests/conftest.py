from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from maintrack.config import Settings
from maintrack.database import Base
from maintrack.models import InventoryItem, Machine, MaintenanceRecord, User
from maintrack.scheduler import SchedulerContext
from maintrack.services.notifier import Notifier


NOW = datetime(2025, 1, 6, 9, 0)


class RecordingEmailer:
    """Collects outgoing mail instead of talking to SMTP."""

    def __init__(self) -> None:
        self.reminders: list[tuple[str | None, object]] = []
        self.low_stock: list[tuple[str | None, list]] = []

    def send_maintenance_reminder(self, to, record, *, now=None) -> bool:
        self.reminders.append((to, record.id))
        return True

    def send_low_stock_alert(self, to, items) -> bool:
        self.low_stock.append((to, [item.name for item in items]))
        return True


@pytest.fixture
def session_factory(tmp_path):
    # File-backed so the notifier's own session sees committed rows.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'maintrack-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier(session_factory) -> Notifier:
    return Notifier(session_factory)


@pytest.fixture
def emailer() -> RecordingEmailer:
    return RecordingEmailer()


@pytest.fixture
def settings() -> Settings:
    return Settings(EMAIL_USER=None, EMAIL_PASSWORD=None)


@pytest.fixture
def scheduler_ctx(session_factory, notifier, emailer, settings) -> SchedulerContext:
    return SchedulerContext(
        session_factory=session_factory,
        notifier=notifier,
        emailer=emailer,
        settings=settings,
    )


@pytest.fixture
def make_user(db):
    def _make(*, name: str = "Pat", role: str = "manager", email: str | None = None, is_active: bool = True) -> User:
        user = User(name=name, role=role, email=email or f"{name.lower()}@example.com", is_active=is_active)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_item(db):
    def _make(*, name: str = "Filter", current_stock: int = 10, min_stock: int = 2, is_active: bool = True) -> InventoryItem:
        item = InventoryItem(
            name=name,
            category="spares",
            current_stock=current_stock,
            min_stock=min_stock,
            is_active=is_active,
        )
        db.add(item)
        db.commit()
        return item

    return _make


@pytest.fixture
def machine(db) -> Machine:
    machine = Machine(name="Compressor #1")
    db.add(machine)
    db.commit()
    return machine


@pytest.fixture
def make_record(db):
    def _make(**overrides) -> MaintenanceRecord:
        fields = {
            "title": "Inspect compressor",
            "status": "pending",
            "priority": "medium",
            "scheduled_date": NOW,
        }
        fields.update(overrides)
        record = MaintenanceRecord(**fields)
        db.add(record)
        db.commit()
        return record

    return _make
