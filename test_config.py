"""
Tests for loading, saving and validating the cron configuration.
"""

import json

import pytest

from cronjobs.commands import ShellCommandCron
from cronjobs.config import CronConfig, CronJobConfig, build_job, load_job_class
from cronjobs.job import CronJob


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CRON_JOBS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("CRON_JOBS_CONFIG_PATH", raising=False)
    monkeypatch.delenv("CRON_JOBS_LOG_DIR", raising=False)


def test_defaults_when_file_missing(tmp_path):
    config = CronConfig()

    assert config.config_path == tmp_path / "data" / "cron_config.json"
    assert len(config.jobs) == 1
    assert config.jobs[0].alias == "hello"
    assert config.get_enabled_jobs() == []
    assert config.validate() == []
    assert config.logging.file == str(tmp_path / "data" / "logs" / "cron.log")


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    monkeypatch.setenv("CRON_JOBS_CONFIG_PATH", str(path))
    assert CronConfig().config_path == path


def test_save_and_load(tmp_path):
    path = tmp_path / "cron_config.json"
    config = CronConfig(str(path))
    config.jobs = []
    config.add_job(CronJobConfig(alias="backup", expression="0 2 * * *", priority=10,
                                 arguments="target:db1", command="backup.sh {target}"))
    config.save()

    data = json.loads(path.read_text())
    assert data["crons"][0]["alias"] == "backup"

    loaded = CronConfig(str(path))
    job = loaded.get_job("backup")
    assert job.expression == "0 2 * * *"
    assert job.priority == 10
    assert job.arguments == "target:db1"
    assert job.enabled


def test_add_remove_job(tmp_path):
    config = CronConfig(str(tmp_path / "cron_config.json"))
    with pytest.raises(ValueError):
        config.add_job(CronJobConfig(alias="hello", command="true"))

    assert config.remove_job("hello")
    assert not config.remove_job("hello")
    assert config.get_job("hello") is None


def test_validate_reports_errors(tmp_path):
    config = CronConfig(str(tmp_path / "cron_config.json"))
    config.jobs = [
        CronJobConfig(alias="bad_expression", expression="60 * * * *", command="true"),
        CronJobConfig(alias="no_command"),
        CronJobConfig(alias="bad_class", job="cronjobs.job:Nope"),
        CronJobConfig(alias="bad_timeout", command="true", timeout=0),
        CronJobConfig(alias="bad_timeout", command="true"),
    ]

    errors = config.validate()

    assert "Cron bad_expression: invalid expression '60 * * * *'" in errors
    assert "Cron no_command: 'command' cannot be empty" in errors
    assert any(error.startswith("Cron bad_class:") for error in errors)
    assert "Cron bad_timeout: 'timeout' must be positive" in errors
    assert "Cron bad_timeout: duplicate alias" in errors


def test_load_job_class():
    assert load_job_class("cronjobs.commands:ShellCommandCron") is ShellCommandCron
    with pytest.raises(ValueError):
        load_job_class("cronjobs.commands")
    with pytest.raises(ValueError):
        load_job_class("json:JSONDecoder")
    with pytest.raises(ValueError):
        load_job_class("no_such_module_here:Job")


def test_build_job():
    job = build_job(CronJobConfig(alias="report", job="cronjobs.job:CronJob",
                                  expression="15 8 * * 1", priority=20, arguments="format:pdf"))

    assert type(job) is CronJob
    assert job.get_alias() == "report"
    assert job.get_expression() == "15 8 * * 1"
    assert job.get_priority() == 20
    assert job.arguments == {"format": "pdf"}


def test_build_shell_job():
    job = build_job(CronJobConfig(alias="hello", command="echo {name}", arguments="name:x", timeout=5))

    assert isinstance(job, ShellCommandCron)
    assert job.command == "echo {name}"
    assert job.timeout == 5


def test_validate_reports_non_string_expression(tmp_path):
    config = CronConfig(str(tmp_path / "cron_config.json"))
    config.jobs = [
        CronJobConfig(alias="numeric", expression=5, command="true"),
        CronJobConfig(alias="missing", expression=None, command="true"),
    ]

    errors = config.validate()

    assert "Cron numeric: invalid expression '5'" in errors
    assert "Cron missing: invalid expression 'None'" in errors
