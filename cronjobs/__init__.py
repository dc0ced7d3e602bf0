"""
Cron Jobs

In-process cron jobs: each job carries a five-field cron schedule, a
priority, configured arguments and an alias, and knows whether it is due.
A runner registers jobs and runs the due ones in priority order, either
once per invocation or every minute using APScheduler.

Features:
- Five-field cron schedules evaluated with croniter
- ``name:value`` argument strings with command-line overrides
- Priority ordering of due jobs (lower number runs first)
- Shell command jobs with argument placeholders
- JSON configuration and a ``cron-jobs`` command-line tool
"""

from cronjobs.job import CronJob, STATUS_OK, STATUS_ERROR
from cronjobs.commands import ShellCommandCron, CommandError
from cronjobs.context import ExecutionContext
from cronjobs.config import CronConfig, CronJobConfig
from cronjobs.runner import CronRunner

__version__ = "0.1.0"
__all__ = [
    "CronJob",
    "STATUS_OK",
    "STATUS_ERROR",
    "ShellCommandCron",
    "CommandError",
    "ExecutionContext",
    "CronConfig",
    "CronJobConfig",
    "CronRunner",
]
