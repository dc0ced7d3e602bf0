"""
Cron configuration management.

Handles loading, saving, and validating the JSON file that declares which
cron jobs exist, what class implements each one, and their schedule,
priority, arguments and alias.
"""

import importlib
import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

from cronjobs.commands import ShellCommandCron, DEFAULT_TIMEOUT
from cronjobs.expression import DEFAULT_EXPRESSION, is_valid_expression
from cronjobs.job import CronJob, DEFAULT_PRIORITY

load_dotenv()

logger = logging.getLogger(__name__)

SHELL_JOB = 'cronjobs.commands:ShellCommandCron'


@dataclass
class CronJobConfig:
    """
    Individual cron job configuration.

    ``job`` is the import path of the CronJob subclass to instantiate,
    written as ``module:ClassName``. ``command`` and ``timeout`` only apply
    to shell command jobs.
    """
    alias: str
    job: str = SHELL_JOB
    expression: str = DEFAULT_EXPRESSION
    priority: int = DEFAULT_PRIORITY
    arguments: str = ''  # name:value tokens
    command: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    enabled: bool = True
    description: Optional[str] = None


def _get_data_dir() -> Path:
    """Get the base directory for cron files."""
    data_dir = os.environ.get('CRON_JOBS_DATA_DIR')
    if data_dir:
        return Path(data_dir).expanduser()
    return Path.home() / ".cron_jobs"


def _get_default_log_file() -> str:
    """Get default log file path from environment or default."""
    if os.environ.get('CRON_JOBS_LOG_DIR'):
        return str(Path(os.environ['CRON_JOBS_LOG_DIR']).expanduser() / "cron.log")
    return str(_get_data_dir() / "logs" / "cron.log")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: str = None  # Set dynamically in __post_init__

    def __post_init__(self):
        if self.file is None:
            self.file = _get_default_log_file()


def load_job_class(path: str) -> type:
    """
    Import a CronJob subclass from a ``module:ClassName`` path.

    Raises:
        ValueError: If the path is malformed or does not name a CronJob class
    """
    module_name, sep, class_name = path.partition(':')
    if not sep or not module_name or not class_name:
        raise ValueError(f"Invalid job class path '{path}', expected module:ClassName")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module '{module_name}': {e}") from e

    job_class = getattr(module, class_name, None)
    if not isinstance(job_class, type) or not issubclass(job_class, CronJob):
        raise ValueError(f"'{path}' is not a CronJob class")
    return job_class


def build_job(entry: CronJobConfig) -> CronJob:
    """
    Instantiate a configured job.

    Args:
        entry: Job configuration

    Returns:
        CronJob with expression, priority, arguments and alias applied
    """
    job_class = load_job_class(entry.job)
    if issubclass(job_class, ShellCommandCron):
        job = job_class(command=entry.command or '', timeout=entry.timeout)
    else:
        job = job_class()

    job.add_expression(entry.expression)
    job.add_priority(entry.priority)
    job.add_arguments(entry.arguments)
    job.set_alias(entry.alias)
    return job


class CronConfig:
    """
    Cron configuration manager.

    Loads and manages cron configuration from JSON file,
    with support for validation and defaults.

    Configuration path priority:
    1. Explicit config_path argument
    2. CRON_JOBS_CONFIG_PATH environment variable
    3. Default: ~/.cron_jobs/cron_config.json
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize cron configuration.

        Args:
            config_path: Path to configuration file. If None, uses env var or default.
        """
        if config_path:
            self.config_path = Path(config_path).expanduser()
        elif os.environ.get('CRON_JOBS_CONFIG_PATH'):
            self.config_path = Path(os.environ['CRON_JOBS_CONFIG_PATH']).expanduser()
        else:
            self.config_path = _get_data_dir() / "cron_config.json"
        self.jobs: List[CronJobConfig] = []
        self.logging: LoggingConfig = LoggingConfig()

        if self.config_path.exists():
            self.load()
        else:
            logger.info(f"No config found at {self.config_path}, using defaults")
            self._load_defaults()

    def load(self):
        """Load configuration from JSON file."""
        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)

            self.jobs = []
            for job_data in data.get('crons', []):
                self.jobs.append(CronJobConfig(**job_data))

            if 'logging' in data:
                self.logging = LoggingConfig(**data['logging'])

            logger.info(f"Loaded {len(self.jobs)} cron(s) from {self.config_path}")

        except Exception as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            raise

    def save(self):
        """Save configuration to JSON file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'crons': [asdict(job) for job in self.jobs],
            'logging': asdict(self.logging)
        }

        with open(self.config_path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.info(f"Saved configuration to {self.config_path}")

    def to_dict(self) -> dict:
        return {
            'config_path': str(self.config_path),
            'crons': [asdict(job) for job in self.jobs],
            'logging': asdict(self.logging)
        }

    def _load_defaults(self):
        """Load default configuration."""
        # Disabled sample so a fresh install runs nothing
        default_job = CronJobConfig(
            alias="hello",
            expression="*/5 * * * *",
            arguments="name:world",
            command="echo hello {name}",
            enabled=False,
            description="Sample job printing a greeting every five minutes"
        )
        self.jobs = [default_job]

    def add_job(self, job: CronJobConfig):
        """Add a new job to configuration."""
        if any(j.alias == job.alias for j in self.jobs):
            raise ValueError(f"Cron with alias '{job.alias}' already exists")

        self.jobs.append(job)
        logger.info(f"Added cron: {job.alias}")

    def remove_job(self, alias: str) -> bool:
        """
        Remove a job by alias.

        Returns:
            True if job was removed, False if not found
        """
        initial_len = len(self.jobs)
        self.jobs = [j for j in self.jobs if j.alias != alias]

        if len(self.jobs) < initial_len:
            logger.info(f"Removed cron: {alias}")
            return True
        return False

    def get_job(self, alias: str) -> Optional[CronJobConfig]:
        """Get job configuration by alias."""
        for job in self.jobs:
            if job.alias == alias:
                return job
        return None

    def get_enabled_jobs(self) -> List[CronJobConfig]:
        """Get list of enabled jobs."""
        return [j for j in self.jobs if j.enabled]

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        seen = set()

        for job in self.jobs:
            if not job.alias or not job.alias.strip():
                errors.append("Cron without alias")
                continue

            if job.alias in seen:
                errors.append(f"Cron {job.alias}: duplicate alias")
            seen.add(job.alias)

            if not isinstance(job.expression, str) or not is_valid_expression(job.expression):
                errors.append(f"Cron {job.alias}: invalid expression '{job.expression}'")

            try:
                job_class = load_job_class(job.job)
            except ValueError as e:
                errors.append(f"Cron {job.alias}: {e}")
                continue

            if issubclass(job_class, ShellCommandCron):
                if not job.command or not job.command.strip():
                    errors.append(f"Cron {job.alias}: 'command' cannot be empty")
                if job.timeout <= 0:
                    errors.append(f"Cron {job.alias}: 'timeout' must be positive")

        return errors

    def __repr__(self):
        return f"CronConfig(jobs={len(self.jobs)}, path={self.config_path})"
