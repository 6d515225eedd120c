"""
Tests for backend/market/services/ingestion.py and alert_service.py

Covers recording alerts (including for unknown and disabled strategies),
dispatching trade signals and the failure paths in between.
"""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from market.events import Event, EventDispatcher, EventKind
from market.exceptions import AlertRecordingError, DispatchQueueFull
from market.models import Alert
from market.services.alert_service import record_alert
from market.services.ingestion import ingest_alert


@pytest.fixture
def dispatcher():
    mock = MagicMock(spec=EventDispatcher)
    mock.submit.return_value = True
    return mock


@pytest.fixture
def failing_db():
    """Session whose commit fails."""
    db = MagicMock()
    db.commit = AsyncMock(side_effect=SQLAlchemyError("disk I/O error"))
    db.rollback = AsyncMock()
    return db


async def _alerts(db_session):
    result = await db_session.execute(select(Alert))
    return result.scalars().all()


# =========================================================
# record_alert
# =========================================================


class TestRecordAlert:
    """Tests for record_alert()"""

    @pytest.mark.asyncio
    async def test_row_matches_alert(self, db_session, make_alert, strategy_id):
        """Happy path: every alert field is persisted."""
        row = await record_alert(db_session, make_alert())

        rows = await _alerts(db_session)
        assert len(rows) == 1
        stored = rows[0]
        assert stored.alert_id == row.alert_id
        assert uuid.UUID(stored.alert_id).version == 7
        assert stored.ticker == "AAPL"
        assert stored.timeframe == "1h"
        assert stored.exchange == "NASDAQ"
        assert stored.alert_type == "entry"
        assert stored.strategy_id == str(strategy_id)
        assert stored.bar_open == Decimal("150.00")
        assert stored.bar_close == Decimal("150.75")
        assert stored.bar_volume == 10000
        assert stored.created_at is not None

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, db_session, make_alert):
        first = await record_alert(db_session, make_alert())
        second = await record_alert(db_session, make_alert())
        assert first.alert_id != second.alert_id

    @pytest.mark.asyncio
    async def test_ids_sort_by_arrival(self, db_session, make_alert):
        """Edge case: later alerts get larger ids, even within one millisecond."""
        rows = [await record_alert(db_session, make_alert()) for _ in range(20)]
        ids = [uuid.UUID(row.alert_id) for row in rows]
        assert ids == sorted(ids)
        assert all(value.version == 7 for value in ids)

    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back(self, failing_db, make_alert):
        """Failure: database errors become AlertRecordingError."""
        with pytest.raises(AlertRecordingError) as exc_info:
            await record_alert(failing_db, make_alert())

        assert exc_info.value.status_code == 500
        failing_db.rollback.assert_awaited_once()


# =========================================================
# ingest_alert
# =========================================================


class TestIngestAlert:
    """Tests for ingest_alert()"""

    @pytest.mark.asyncio
    async def test_enabled_strategy_dispatches(
        self, db_session, make_alert, strategy_table, stub_client, clients_for, dispatcher
    ):
        """Happy path: alert recorded, one trade signal event submitted."""
        client = stub_client()
        alert = make_alert()

        result = await ingest_alert(alert, db_session, strategy_table, clients_for(client), dispatcher)

        assert result.dispatched is True
        assert result.reason is None
        assert len(await _alerts(db_session)) == 1

        dispatcher.submit.assert_called_once()
        event = dispatcher.submit.call_args.args[0]
        assert isinstance(event, Event)
        assert event.kind == EventKind.TRADE_SIGNAL
        assert event.payload.alert == alert
        assert event.payload.client is client
        # nothing reaches the broker until a worker handles the event
        assert client.submitted == []

    @pytest.mark.asyncio
    async def test_unknown_strategy_recorded_not_dispatched(
        self, db_session, make_alert, strategy_table, stub_client, clients_for, dispatcher
    ):
        """Edge case: unknown strategy is still recorded, nothing dispatched."""
        alert = make_alert(strategy_id=uuid.uuid4())

        result = await ingest_alert(alert, db_session, strategy_table, clients_for(stub_client()), dispatcher)

        assert result.dispatched is False
        assert "Unknown strategy" in result.reason
        assert len(await _alerts(db_session)) == 1
        dispatcher.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_strategy_recorded_not_dispatched(
        self, db_session, make_alert, strategy_table, stub_client, clients_for, dispatcher, disabled_strategy_id
    ):
        """Edge case: disabled strategy is still recorded, nothing dispatched."""
        alert = make_alert(strategy_id=disabled_strategy_id)

        result = await ingest_alert(alert, db_session, strategy_table, clients_for(stub_client()), dispatcher)

        assert result.dispatched is False
        assert "disabled" in result.reason
        assert len(await _alerts(db_session)) == 1
        dispatcher.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_recording_failure_dispatches_nothing(
        self, failing_db, make_alert, strategy_table, stub_client, clients_for, dispatcher
    ):
        """Failure: an alert that can't be recorded is never executed."""
        with pytest.raises(AlertRecordingError):
            await ingest_alert(make_alert(), failing_db, strategy_table, clients_for(stub_client()), dispatcher)

        dispatcher.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_queue_full_reject_propagates(
        self, db_session, make_alert, strategy_table, stub_client, clients_for, dispatcher
    ):
        """Failure: REJECT overflow surfaces after the alert is recorded."""
        dispatcher.submit.side_effect = DispatchQueueFull()

        with pytest.raises(DispatchQueueFull):
            await ingest_alert(make_alert(), db_session, strategy_table, clients_for(stub_client()), dispatcher)

        assert len(await _alerts(db_session)) == 1

    @pytest.mark.asyncio
    async def test_queue_full_reject_logs_alert_id(
        self, db_session, make_alert, strategy_table, stub_client, clients_for, dispatcher, caplog
    ):
        """Edge case: a rejected alert is still traceable by its recorded id."""
        dispatcher.submit.side_effect = DispatchQueueFull()

        with caplog.at_level("INFO", logger="market.services.ingestion"):
            with pytest.raises(DispatchQueueFull):
                await ingest_alert(make_alert(), db_session, strategy_table, clients_for(stub_client()), dispatcher)

        (stored,) = await _alerts(db_session)
        assert stored.alert_id in caplog.text
        assert "rejected" in caplog.text

    @pytest.mark.asyncio
    async def test_queue_full_drop_reports_reason(
        self, db_session, make_alert, strategy_table, stub_client, clients_for, dispatcher
    ):
        """Edge case: DROP overflow returns dispatched=False."""
        dispatcher.submit.return_value = False

        result = await ingest_alert(make_alert(), db_session, strategy_table, clients_for(stub_client()), dispatcher)

        assert result.dispatched is False
        assert "queue full" in result.reason
