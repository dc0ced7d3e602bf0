"""
Cron runner.

Holds the registered cron jobs, picks the ones that are due, orders them
by priority and runs them. A single pass can be triggered from a system
crontab (``cron-jobs run`` every minute), or the runner can keep itself
alive with APScheduler firing a pass at the top of every minute.

Lower priority numbers run first. Jobs inside one pass run sequentially.
"""

import logging
import signal
import sys
from datetime import datetime
from typing import Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.events import (
    EVENT_JOB_EXECUTED,
    EVENT_JOB_ERROR,
    EVENT_JOB_MISSED
)

from cronjobs.config import CronConfig, build_job
from cronjobs.context import ExecutionContext
from cronjobs.job import CronJob, STATUS_ERROR

logger = logging.getLogger(__name__)

TICK_JOB_ID = 'cron_tick'


class CronRunner:
    """
    Registry and runner for cron jobs.

    Jobs are keyed by alias. The APScheduler instance is created lazily by
    ``start`` so that one-shot use never spins up scheduler threads.
    """

    def __init__(self):
        self._jobs: Dict[str, CronJob] = {}
        self.scheduler = None

    def register(self, job: CronJob, alias: Optional[str] = None) -> CronJob:
        """
        Register a job under its alias.

        Args:
            job: Job to register
            alias: Alias to assign (keeps the job's own alias if None)

        Returns:
            The registered job

        Raises:
            ValueError: If the job has no alias or the alias is taken
        """
        if alias is not None:
            job.set_alias(alias)

        alias = job.get_alias()
        if not alias:
            raise ValueError(f"Cannot register {type(job).__name__} without an alias")
        if alias in self._jobs:
            raise ValueError(f"Cron with alias '{alias}' already registered")

        job.init_application(self)
        self._jobs[alias] = job
        logger.debug(f"Registered cron '{alias}' ({job.get_expression()}, priority {job.get_priority()})")
        return job

    def unregister(self, alias: str) -> bool:
        """
        Remove a job by alias.

        Returns:
            True if removed, False if not found
        """
        job = self._jobs.pop(alias, None)
        if job is None:
            return False
        job.init_application(None)
        return True

    def get(self, alias: str) -> Optional[CronJob]:
        return self._jobs.get(alias)

    def jobs(self) -> List[CronJob]:
        """All registered jobs, lowest priority number first."""
        return sorted(self._jobs.values(), key=lambda job: job.get_priority())

    def due_jobs(self, now: Optional[datetime] = None) -> List[CronJob]:
        """
        Get the jobs due at ``now``, in run order.

        Ties in priority keep registration order.

        Raises:
            CroniterBadCronError: If a job's expression is malformed
        """
        if now is None:
            now = datetime.now()
        return [job for job in self.jobs() if job.is_due(now)]

    def run_job(self, job: CronJob, context: Optional[ExecutionContext] = None) -> int:
        """
        Run a single job.

        Exceptions raised by the job are logged and reported as
        STATUS_ERROR so the remaining jobs of a pass still run.

        Returns:
            Job status code
        """
        if context is None:
            context = ExecutionContext()

        alias = job.get_alias()
        started = datetime.now()
        logger.info(f"[{alias}] Starting cron")

        try:
            status = job.run(context)
        except Exception as e:
            logger.error(f"[{alias}] Cron failed: {e}", exc_info=True)
            return STATUS_ERROR

        duration = (datetime.now() - started).total_seconds()
        logger.info(f"[{alias}] Finished with status {status} in {duration:.2f}s")
        return status

    def run_due(
        self,
        now: Optional[datetime] = None,
        context: Optional[ExecutionContext] = None
    ) -> Dict[str, int]:
        """
        Run every due job once.

        Returns:
            Dict of alias to status code, in run order
        """
        due = self.due_jobs(now)
        if not due:
            logger.debug("No cron due")
            return {}

        logger.info(f"{len(due)} cron(s) due: {', '.join(job.get_alias() for job in due)}")
        results = {}
        for job in due:
            results[job.get_alias()] = self.run_job(job, context)
        return results

    def load_config(self, config: CronConfig):
        """
        Register every enabled job of a configuration.

        Raises:
            ValueError: If the configuration does not validate
        """
        errors = config.validate()
        if errors:
            logger.error("Configuration validation failed:")
            for error in errors:
                logger.error(f"  - {error}")
            raise ValueError("Invalid configuration")

        enabled_jobs = config.get_enabled_jobs()
        logger.info(f"Loading {len(enabled_jobs)} enabled cron(s) from configuration")

        for entry in enabled_jobs:
            self.register(build_job(entry))

    def _tick(self):
        self.run_due()

    def _create_scheduler(self, foreground: bool):
        executors = {
            'default': ThreadPoolExecutor(1)
        }

        job_defaults = {
            'coalesce': True,  # Combine missed passes into one
            'max_instances': 1,  # Passes never overlap
            'misfire_grace_time': 30
        }

        if foreground:
            scheduler = BlockingScheduler(executors=executors, job_defaults=job_defaults)
        else:
            scheduler = BackgroundScheduler(executors=executors, job_defaults=job_defaults)

        def job_executed_listener(event):
            logger.debug(f"Cron pass finished (scheduled {event.scheduled_run_time})")

        def job_error_listener(event):
            logger.error(f"Cron pass raised exception: {event.exception}")

        def job_missed_listener(event):
            logger.warning(f"Cron pass missed scheduled run time {event.scheduled_run_time}")

        scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
        scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)
        scheduler.add_listener(job_missed_listener, EVENT_JOB_MISSED)

        scheduler.add_job(
            self._tick,
            'cron',
            minute='*',
            second=0,
            id=TICK_JOB_ID,
            replace_existing=True
        )
        return scheduler

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""

        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down...")
            self.stop(wait=False)
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def start(self, foreground: bool = False):
        """
        Start running due jobs every minute.

        In foreground mode this call blocks until the runner is stopped.
        """
        if self.is_running():
            logger.warning("Cron runner is already running")
            return

        self.scheduler = self._create_scheduler(foreground)
        logger.info(f"Starting cron runner with {len(self._jobs)} cron(s)")
        for job in self.jobs():
            logger.info(f"  - {job.get_alias()}: {job.get_expression()} (priority {job.get_priority()})")

        if foreground:
            self._setup_signal_handlers()
        self.scheduler.start()

    def stop(self, wait: bool = True):
        """
        Stop the runner.

        Args:
            wait: If True, wait for a running pass to complete
        """
        if self.is_running():
            logger.info("Stopping cron runner...")
            self.scheduler.shutdown(wait=wait)
            logger.info("Cron runner stopped")
        else:
            logger.warning("Cron runner is not running")

    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def __len__(self):
        return len(self._jobs)
