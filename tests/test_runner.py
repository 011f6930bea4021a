# tests/test_runner.py

import logging
from unittest.mock import MagicMock

import pytest

from history_indexer.tasks import LiquidityHistoryImporter, LiquidityHistoryValidator, TaskRunner


@pytest.fixture
def runner(config):
    importer = MagicMock(spec=LiquidityHistoryImporter)
    validator = MagicMock(spec=LiquidityHistoryValidator)
    return TaskRunner(importer, validator, config)


def test_jobs_use_configured_intervals(runner, config):
    assert runner.jobs['import'].interval == config.scheduler.import_interval
    assert runner.jobs['validate'].interval == config.scheduler.validate_interval


def test_overlapping_run_is_skipped(runner, caplog):
    job = runner.jobs['import']
    job.lock.acquire()
    try:
        with caplog.at_level(logging.WARNING):
            ran = runner.run_job('import')
    finally:
        job.lock.release()

    assert ran is False
    job.func.assert_not_called()
    assert "Skipped job, previous run still in progress" in caplog.text


def test_failed_job_is_logged_and_released(runner, caplog):
    job = runner.jobs['validate']
    job.func.side_effect = RuntimeError("middleware down")

    with caplog.at_level(logging.ERROR):
        assert runner.run_job('validate') is True

    assert "Job failed" in caplog.text
    assert not job.lock.locked()
    assert runner.run_job('validate') is True
    assert job.func.call_count == 2


def test_tick_starts_due_jobs_once(runner):
    started = runner.tick(now=0)
    for thread in runner._threads:
        thread.join()

    assert sorted(started) == ['import', 'validate']
    assert runner.tick(now=1) == []
    runner.jobs['import'].func.assert_called_once()
