# tests/services/test_dispatch_worker.py
import asyncio
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from tracker_alerts.core.errors import InvalidArgumentsError
from tracker_alerts.services.dispatch import (
    DispatchReport,
    DispatchWorker,
    NotificationDispatcher,
)


@pytest.fixture
def mock_dispatcher(mocker):
    dispatcher = mocker.MagicMock(spec=NotificationDispatcher)
    dispatcher.run_cycle.return_value = DispatchReport()
    return dispatcher


@pytest.mark.asyncio
async def test_first_cycle_includes_summary(mock_dispatcher, session_factory):
    worker = DispatchWorker(mock_dispatcher, session_factory=session_factory, interval=0.1)

    await worker.start()
    await asyncio.sleep(0.15)
    await worker.stop()

    first_call = mock_dispatcher.run_cycle.call_args_list[0]
    assert first_call.kwargs["include_summary"] is True


@pytest.mark.asyncio
async def test_worker_survives_database_errors(mock_dispatcher, session_factory):
    mock_dispatcher.run_cycle.side_effect = OperationalError("SELECT 1", {}, Exception("gone"))
    worker = DispatchWorker(mock_dispatcher, session_factory=session_factory, interval=0.1)

    await worker.start()
    await asyncio.sleep(0.25)
    await worker.stop()

    assert mock_dispatcher.run_cycle.call_count >= 2
    # A failed summary cycle is attempted again.
    assert all(c.kwargs["include_summary"] for c in mock_dispatcher.run_cycle.call_args_list)


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(mock_dispatcher, session_factory):
    worker = DispatchWorker(mock_dispatcher, session_factory=session_factory, interval=0.1)

    await worker.stop()

    mock_dispatcher.run_cycle.assert_not_called()


def test_summary_runs_once_per_hour(mock_dispatcher, session_factory):
    worker = DispatchWorker(mock_dispatcher, session_factory=session_factory, interval=60)
    eight = datetime(2026, 10, 19, 8, 1)

    assert worker.summary_due(eight)
    worker.run_once(True, eight)
    mock_dispatcher.run_cycle.assert_called_once()
    assert mock_dispatcher.run_cycle.call_args.kwargs == {"include_summary": True, "now": eight}

    worker._last_summary = eight.replace(minute=0)

    assert not worker.summary_due(datetime(2026, 10, 19, 8, 59))
    assert worker.summary_due(datetime(2026, 10, 19, 9, 0))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [InvalidArgumentsError("Hour out of range: 99"), RuntimeError("client closed"), KeyError("x")],
)
async def test_worker_survives_cycle_errors(mock_dispatcher, session_factory, error):
    errors = [error]

    def run_cycle(db, **kwargs):
        if errors:
            raise errors.pop()
        return DispatchReport()

    mock_dispatcher.run_cycle.side_effect = run_cycle
    worker = DispatchWorker(mock_dispatcher, session_factory=session_factory, interval=0.1)

    await worker.start()
    await asyncio.sleep(0.25)
    task = worker._task
    assert task is not None and not task.done()
    await worker.stop()

    assert mock_dispatcher.run_cycle.call_count >= 2
    # The failed first cycle does not consume the hour's summary.
    assert mock_dispatcher.run_cycle.call_args_list[1].kwargs["include_summary"] is True
