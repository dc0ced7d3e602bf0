"""
Tests for the cron runner: registration, due filtering, priority order.
"""

from datetime import datetime

import pytest
from croniter import CroniterBadCronError

from cronjobs.config import CronConfig, CronJobConfig
from cronjobs.job import CronJob, STATUS_OK, STATUS_ERROR
from cronjobs.runner import CronRunner, TICK_JOB_ID

NOON = datetime(2024, 6, 1, 12, 0, 10)


class RecordingCron(CronJob):
    """Job appending its alias to a shared list when run."""

    def __init__(self, log, fail=False, **kwargs):
        super().__init__(**kwargs)
        self.log = log
        self.fail = fail

    def execute(self, context=None):
        self.log.append(self.get_alias())
        if self.fail:
            raise RuntimeError("boom")


def test_register_assigns_alias_and_application():
    runner = CronRunner()
    job = runner.register(CronJob(), alias="cleanup")

    assert job.get_alias() == "cleanup"
    assert job.application is runner
    assert runner.get("cleanup") is job
    assert len(runner) == 1


def test_register_requires_alias():
    with pytest.raises(ValueError):
        CronRunner().register(CronJob())


def test_register_rejects_duplicate_alias():
    runner = CronRunner()
    runner.register(CronJob(alias="cleanup"))
    with pytest.raises(ValueError):
        runner.register(CronJob(alias="cleanup"))


def test_unregister():
    runner = CronRunner()
    job = runner.register(CronJob(alias="cleanup"))

    assert runner.unregister("cleanup")
    assert job.application is None
    assert runner.get("cleanup") is None
    assert not runner.unregister("cleanup")


def test_due_jobs_sorted_by_priority():
    log = []
    runner = CronRunner()
    runner.register(RecordingCron(log, alias="late", priority=50))
    runner.register(RecordingCron(log, alias="first", priority=10))
    runner.register(RecordingCron(log, alias="second", priority=10))
    runner.register(RecordingCron(log, alias="never", expression="0 0 1 1 *", priority=1))

    due = runner.due_jobs(NOON)
    assert [job.get_alias() for job in due] == ["first", "second", "late"]

    results = runner.run_due(NOON)
    assert log == ["first", "second", "late"]
    assert results == {"first": STATUS_OK, "second": STATUS_OK, "late": STATUS_OK}


def test_run_due_nothing_due():
    runner = CronRunner()
    runner.register(RecordingCron([], alias="yearly", expression="0 0 1 1 *"))
    assert runner.run_due(NOON) == {}


def test_failing_job_does_not_stop_pass():
    log = []
    runner = CronRunner()
    runner.register(RecordingCron(log, alias="broken", priority=1, fail=True))
    runner.register(RecordingCron(log, alias="healthy", priority=2))

    results = runner.run_due(NOON)

    assert log == ["broken", "healthy"]
    assert results == {"broken": STATUS_ERROR, "healthy": STATUS_OK}


def test_malformed_expression_propagates():
    runner = CronRunner()
    runner.register(CronJob(alias="bad", minute="60"))
    with pytest.raises(CroniterBadCronError):
        runner.due_jobs(NOON)


def test_load_config(tmp_path):
    config = CronConfig(str(tmp_path / "cron_config.json"))
    config.jobs = [
        CronJobConfig(alias="hello", expression="*/5 * * * *", priority=5,
                      arguments="name:world", command="echo hello {name}"),
        CronJobConfig(alias="off", command="true", enabled=False),
    ]

    runner = CronRunner()
    runner.load_config(config)

    job = runner.get("hello")
    assert len(runner) == 1
    assert job.get_expression() == "*/5 * * * *"
    assert job.get_priority() == 5
    assert job.get_arguments() == "name:world"
    assert job.application is runner


def test_load_config_rejects_invalid(tmp_path):
    config = CronConfig(str(tmp_path / "cron_config.json"))
    config.jobs = [CronJobConfig(alias="bad", expression="61 * * * *", command="true")]

    with pytest.raises(ValueError):
        CronRunner().load_config(config)


def test_start_and_stop_background():
    runner = CronRunner()
    runner.register(CronJob(alias="noop"))

    runner.start()
    try:
        assert runner.is_running()
        assert runner.scheduler.get_job(TICK_JOB_ID) is not None
    finally:
        runner.stop(wait=False)

    assert not runner.is_running()
