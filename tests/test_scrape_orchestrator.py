"""
tests/test_scrape_orchestrator.py

End-to-end ingestion runs against a SQLite database with fake sources.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.alerts import REJECTED_RUN_ERROR, AlertCandidate, ScrapeOutcome, SkippedAlert
from app.scraping.errors import SourceFetchError
from app.scraping.storage import AlertStore, SQLAlchemyAlertStore
from app.services.scrape_orchestrator import INTERRUPTED_RUN_ERROR, ScrapeOrchestrator
from app.services.status_register import StatusRegister
from db.models.regulatory_alert import RegulatoryAlert
from db.repositories.errors import RunAcquisitionError
from tests.conftest import FailingBeginRegister, FakeAlertSource, make_candidate


class RecordingStore(AlertStore):
    """
    Delegates to the real store, records insert order and fails on demand.
    """

    def __init__(self, inner: AlertStore, *, fail_urls: set[str] | None = None) -> None:
        self.inner = inner
        self.fail_urls = fail_urls or set()
        self.inserted: list[str] = []

    def exists(self, dedup_key: str) -> bool:
        return self.inner.exists(dedup_key)

    def insert(self, candidate: AlertCandidate) -> bool:
        if candidate.url in self.fail_urls:
            raise RuntimeError("simulated write failure")
        stored = self.inner.insert(candidate)
        if stored:
            self.inserted.append(candidate.url)
        return stored


class StoreFactorySpy:
    def __init__(self, *, fail_urls: set[str] | None = None, error: Exception | None = None) -> None:
        self.fail_urls = fail_urls
        self.error = error
        self.calls = 0
        self.stores: list[RecordingStore] = []

    def __call__(self, db: Session) -> AlertStore:
        self.calls += 1
        if self.error is not None:
            raise self.error
        store = RecordingStore(SQLAlchemyAlertStore(session=db), fail_urls=self.fail_urls)
        self.stores.append(store)
        return store


def _build(
    session_factory,
    register: StatusRegister,
    source: FakeAlertSource,
    store_factory: StoreFactorySpy | None = None,
) -> ScrapeOrchestrator:
    return ScrapeOrchestrator(
        source=source,
        session_factory=session_factory,
        register=register,
        store_factory=store_factory,
    )


def _stored_urls(session_factory) -> list[str]:
    with session_factory() as db:
        return list(db.scalars(select(RegulatoryAlert.url)))


class TestSuccessfulRuns:
    def test_inserts_new_alerts_and_marks_success(self, session_factory, register) -> None:
        source = FakeAlertSource([make_candidate(i) for i in range(3)])

        result = _build(session_factory, register, source).run(max_alerts=5)

        assert result.success is True
        assert result.outcome == ScrapeOutcome.COMPLETED
        assert result.new_alerts == 3
        assert result.total_processed == 3
        assert result.errors == []
        assert len(_stored_urls(session_factory)) == 3

        snapshot = register.read_status()
        assert snapshot.is_scraping is False
        assert snapshot.last_scraped_at is not None
        assert snapshot.last_error is None

    def test_second_run_is_idempotent(self, session_factory, register) -> None:
        source = FakeAlertSource([make_candidate(i) for i in range(4)])
        orchestrator = _build(session_factory, register, source)

        first = orchestrator.run(max_alerts=10)
        second = orchestrator.run(max_alerts=10)

        assert first.new_alerts == 4
        assert second.new_alerts == 0
        assert second.total_processed == 4
        assert second.success is True
        assert len(_stored_urls(session_factory)) == 4

    def test_url_variants_are_one_alert(self, session_factory, register) -> None:
        base = "https://alerts.example.org/2026/10/public-alert-no-001"
        source = FakeAlertSource(
            [
                make_candidate(1, url=base),
                make_candidate(1, url=f"{base}/?utm_source=twitter"),
                make_candidate(1, url=f"{base}#comments"),
            ]
        )

        result = _build(session_factory, register, source).run(max_alerts=5)

        assert result.new_alerts == 1
        assert result.total_processed == 3
        assert _stored_urls(session_factory) == [base]

    def test_inserts_follow_source_order(self, session_factory, register) -> None:
        candidates = [make_candidate(i) for i in (7, 2, 9, 4)]
        spy = StoreFactorySpy()

        _build(session_factory, register, FakeAlertSource(candidates), spy).run(max_alerts=10)

        assert spy.stores[0].inserted == [candidate.url for candidate in candidates]

    def test_candidates_beyond_limit_are_ignored(self, session_factory, register) -> None:
        source = FakeAlertSource([make_candidate(i) for i in range(6)])

        result = _build(session_factory, register, source).run(max_alerts=2)

        assert source.calls == [2]
        assert result.total_processed == 2
        assert result.new_alerts == 2
        assert len(_stored_urls(session_factory)) == 2

    def test_empty_source_is_a_successful_run(self, session_factory, register) -> None:
        result = _build(session_factory, register, FakeAlertSource([])).run(max_alerts=5)

        assert result.success is True
        assert result.total_processed == 0
        assert result.new_alerts == 0


class TestFailureIsolation:
    def test_one_bad_candidate_does_not_abort_the_run(self, session_factory, register) -> None:
        candidates = [make_candidate(i) for i in range(5)]
        spy = StoreFactorySpy(fail_urls={candidates[1].url})

        result = _build(session_factory, register, FakeAlertSource(candidates), spy).run(max_alerts=5)

        assert result.success is True
        assert result.total_processed == 5
        assert result.new_alerts == 4
        assert len(result.errors) == 1
        assert "#2" in result.errors[0]
        assert candidates[1].url in result.errors[0]
        assert candidates[1].url not in _stored_urls(session_factory)
        assert register.read_status().last_error is None

    def test_skipped_detail_pages_are_counted_and_reported(self, session_factory, register) -> None:
        skipped = SkippedAlert(
            url="https://alerts.example.org/2026/10/public-alert-no-900/",
            title="Public Alert No. 900: Recall of Contaminated Syrup",
            error="SourceFetchError: GET failed with status=404",
        )
        source = FakeAlertSource([make_candidate(1)], skipped=[skipped])

        result = _build(session_factory, register, source).run(max_alerts=5)

        assert result.success is True
        assert result.outcome == ScrapeOutcome.COMPLETED
        assert result.new_alerts == 1
        assert result.total_processed == 2
        assert result.errors == [
            "Failed to extract alert: Public Alert No. 900: Recall of Contaminated Syrup "
            "(https://alerts.example.org/2026/10/public-alert-no-900/): "
            "SourceFetchError: GET failed with status=404"
        ]
        assert _stored_urls(session_factory) == [make_candidate(1).url]
        assert register.read_status().last_error is None

    def test_source_failure_releases_flag_and_records_error(self, session_factory, register) -> None:
        source = FakeAlertSource(error=SourceFetchError("listing unreachable"))
        spy = StoreFactorySpy()

        result = _build(session_factory, register, source, spy).run(max_alerts=5)

        assert result.success is False
        assert result.outcome == ScrapeOutcome.SOURCE_FAILED
        assert result.new_alerts == 0
        assert result.total_processed == 0
        assert spy.calls == 0

        snapshot = register.read_status()
        assert snapshot.is_scraping is False
        assert snapshot.last_scraped_at is None
        assert snapshot.last_error is not None
        assert snapshot.last_error.startswith("Source fetch failed")
        assert "listing unreachable" in snapshot.last_error

    def test_unexpected_fault_releases_flag(self, session_factory, register) -> None:
        spy = StoreFactorySpy(error=RuntimeError("store wiring broke"))
        source = FakeAlertSource([make_candidate(1)])

        result = _build(session_factory, register, source, spy).run(max_alerts=5)

        assert result.success is False
        assert result.outcome == ScrapeOutcome.FAILED
        snapshot = register.read_status()
        assert snapshot.is_scraping is False
        assert "store wiring broke" in (snapshot.last_error or "")

    def test_interrupt_still_releases_flag(self, session_factory, register) -> None:
        source = FakeAlertSource(error=KeyboardInterrupt())
        orchestrator = _build(session_factory, register, source)

        with pytest.raises(KeyboardInterrupt):
            orchestrator.run(max_alerts=5)

        snapshot = register.read_status()
        assert snapshot.is_scraping is False
        assert snapshot.last_error == INTERRUPTED_RUN_ERROR
        assert register.try_begin_run() is True


class TestMutualExclusion:
    def test_busy_run_is_rejected_without_side_effects(self, session_factory, register) -> None:
        assert register.try_begin_run() is True
        source = FakeAlertSource([make_candidate(1)])
        spy = StoreFactorySpy()

        result = _build(session_factory, register, source, spy).run(max_alerts=5)

        assert result.success is False
        assert result.outcome == ScrapeOutcome.REJECTED
        assert result.errors == [REJECTED_RUN_ERROR]
        assert source.calls == []
        assert spy.calls == 0
        assert _stored_urls(session_factory) == []
        assert register.read_status().is_scraping is True

    def test_acquisition_failure_is_raised_without_touching_the_flag(self, session_factory) -> None:
        register = FailingBeginRegister(session_factory=session_factory)
        register.initialize()
        before = register.read_status()
        source = FakeAlertSource([make_candidate(1)])

        with pytest.raises(RunAcquisitionError):
            _build(session_factory, register, source).run(max_alerts=5)

        assert source.calls == []
        snapshot = register.read_status()
        assert snapshot.is_scraping is False
        assert snapshot.last_error is None
        assert snapshot.last_updated == before.last_updated


class TestArguments:
    @pytest.mark.parametrize("max_alerts", [0, -1])
    def test_non_positive_limit_is_rejected(self, session_factory, register, max_alerts: int) -> None:
        source = FakeAlertSource([make_candidate(1)])

        with pytest.raises(ValueError):
            _build(session_factory, register, source).run(max_alerts=max_alerts)

        assert source.calls == []
        assert register.read_status().last_updated is None

    def test_default_register_shares_session_factory(self, session_factory) -> None:
        orchestrator = ScrapeOrchestrator(source=FakeAlertSource([]), session_factory=session_factory)

        orchestrator.run(max_alerts=1)

        assert orchestrator.register.read_status().last_scraped_at is not None
