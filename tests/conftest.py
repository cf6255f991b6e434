"""
tests/conftest.py

Shared fixtures: a file-backed SQLite database per test (so several
connections and threads can share it) plus in-memory alert sources.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

import db.models  # noqa: F401  registers all ORM models on Base.metadata
from app.domain.alerts import AlertBatch, AlertCandidate, SkippedAlert
from app.scraping.base import AlertSource
from app.services.status_register import StatusRegister
from db.base import Base
from db.repositories.errors import StatusPersistenceError


class FakeAlertSource(AlertSource):
    """
    Returns a fixed batch, ignoring ``limit`` so callers' own truncation is
    observable. Raises ``error`` instead when given one.
    """

    def __init__(
        self,
        candidates: Sequence[AlertCandidate] = (),
        *,
        skipped: Sequence[SkippedAlert] = (),
        error: BaseException | None = None,
    ) -> None:
        self.candidates = list(candidates)
        self.skipped = list(skipped)
        self.error = error
        self.calls: list[int] = []

    def fetch_alerts(self, *, limit: int) -> AlertBatch:
        self.calls.append(limit)
        if self.error is not None:
            raise self.error
        return AlertBatch(candidates=list(self.candidates), skipped=list(self.skipped))


class FailingBeginRegister(StatusRegister):
    """
    Fails the next ``failures`` calls to ``try_begin_run``, as if the
    database dropped the connection, then behaves normally.
    """

    def __init__(self, *, session_factory: Callable[[], Session], failures: int = 1) -> None:
        super().__init__(session_factory=session_factory)
        self.failures = failures

    def try_begin_run(self) -> bool:
        if self.failures > 0:
            self.failures -= 1
            raise StatusPersistenceError("connection dropped while claiming the run flag")
        return super().try_begin_run()


def make_candidate(index: int, **overrides: object) -> AlertCandidate:
    values: dict[str, object] = {
        "url": f"https://alerts.example.org/2026/10/public-alert-no-{index:03d}/",
        "title": f"Public Alert No. {index:03d}: Recall of Falsified Paracetamol",
        "excerpt": f"Excerpt for alert {index}",
        "product_names": ["paracetamol"],
        "batch_numbers": [f"B{index:04d}"],
        "batch_number": f"B{index:04d}",
    }
    values.update(overrides)
    return AlertCandidate(**values)  # type: ignore[arg-type]


@pytest.fixture()
def engine(tmp_path) -> Iterator[Engine]:
    database_path = tmp_path / "alerts.sqlite3"
    sqlite_engine = create_engine(
        f"sqlite:///{database_path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(sqlite_engine)
    try:
        yield sqlite_engine
    finally:
        sqlite_engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def register(session_factory: Callable[[], Session]) -> StatusRegister:
    return StatusRegister(session_factory=session_factory)


@pytest.fixture()
def broken_session_factory() -> Iterator[Callable[[], Session]]:
    """Sessions bound to a database with no tables: every query fails."""
    empty_engine = create_engine("sqlite://")
    try:
        yield sessionmaker(bind=empty_engine, class_=Session, expire_on_commit=False)
    finally:
        empty_engine.dispose()
