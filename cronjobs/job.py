"""
Cron job base class.

A CronJob is one schedulable unit of work. It carries a five-field cron
schedule (or a full expression override), a priority, a set of
configured arguments and an alias, and can tell the runner whether it is
due right now. Concrete jobs subclass CronJob and implement ``execute``.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from cronjobs.arguments import parse_arguments, format_arguments
from cronjobs.expression import build_expression, is_due

logger = logging.getLogger(__name__)

STATUS_OK = 0
STATUS_ERROR = 1

DEFAULT_PRIORITY = 100


class CronJob:
    """
    Base class for scheduled jobs.

    The effective schedule is the explicit ``expression`` when one was set,
    otherwise the five fields joined in crontab order. Nothing is validated
    until ``is_due`` asks croniter to evaluate it.

    Priority is only stored here. CronRunner runs lower numbers first.
    """

    def __init__(
        self,
        minute: str = '*',
        hour: str = '*',
        day_of_month: str = '*',
        month: str = '*',
        day_of_week: str = '*',
        expression: Optional[str] = None,
        priority: int = DEFAULT_PRIORITY,
        arguments: Optional[str] = None,
        alias: Optional[str] = None
    ):
        """
        Initialize a cron job.

        Args:
            minute: Minute field
            hour: Hour field
            day_of_month: Day of month field
            month: Month field
            day_of_week: Day of week field
            expression: Full five-field expression overriding the fields
            priority: Run order among due jobs (lower runs first)
            arguments: Argument string of ``name:value`` tokens
            alias: Identifier used by the runner
        """
        self.minute = minute
        self.hour = hour
        self.day_of_month = day_of_month
        self.month = month
        self.day_of_week = day_of_week
        self.expression = expression
        self.priority = priority
        self.arguments: Dict[str, str] = {}
        self.alias = alias
        self.application = None

        if arguments:
            self.add_arguments(arguments)

    def init_application(self, application: Any):
        """Attach the runner this job is registered with."""
        self.application = application

    def run(self, context=None) -> int:
        """
        Run the job.

        Args:
            context: ExecutionContext passed through to ``execute``

        Returns:
            Status code; a job returning None counts as STATUS_OK
        """
        status = self.execute(context)
        if status is None:
            status = STATUS_OK
        return status

    def execute(self, context=None) -> Optional[int]:
        """Job logic. Subclasses must override this."""
        raise NotImplementedError(
            f"{type(self).__name__} must implement execute()"
        )

    def is_due(self, now: Optional[datetime] = None) -> bool:
        """
        Check the schedule against the current time.

        Args:
            now: Instant to test (defaults to the current local time)

        Returns:
            True if the job should run

        Raises:
            CroniterBadCronError: If the effective expression is malformed
        """
        return is_due(self.get_expression(), now)

    def get_expression(self) -> str:
        """Return the cron expression in effect."""
        if self.expression:
            return self.expression
        return build_expression(
            self.minute,
            self.hour,
            self.day_of_month,
            self.month,
            self.day_of_week
        )

    def add_expression(self, expression: str):
        """Set a full expression overriding the individual fields."""
        self.expression = expression

    def set_minute(self, minute: str):
        self.minute = minute

    def set_hour(self, hour: str):
        self.hour = hour

    def set_day_of_month(self, day_of_month: str):
        self.day_of_month = day_of_month

    def set_month(self, month: str):
        self.month = month

    def set_day_of_week(self, day_of_week: str):
        self.day_of_week = day_of_week

    def add_arguments(self, arguments: Optional[str] = None):
        """
        Replace the configured arguments from an argument string.

        Malformed tokens are ignored. Calling with None or with a string
        containing no valid token leaves the job without arguments.

        Args:
            arguments: String of ``name:value`` tokens
        """
        self.arguments = parse_arguments(arguments)

    def get_arguments(self) -> str:
        """Return configured arguments as ``name:value`` tokens."""
        return format_arguments(self.arguments)

    def get_argument(self, context, key: str) -> Optional[str]:
        """
        Resolve one argument.

        A value supplied by the execution context (e.g. on the command
        line) wins over the configured one.

        Args:
            context: ExecutionContext, or None to use configured values only
            key: Argument name

        Returns:
            Argument value, or None if neither source has it
        """
        if context is not None and context.has_argument(key):
            return context.get_argument(key)
        return self.arguments.get(key)

    def add_priority(self, priority: int):
        self.priority = priority

    def get_priority(self) -> int:
        return self.priority

    def set_alias(self, alias: str):
        self.alias = alias

    def get_alias(self) -> Optional[str]:
        return self.alias

    def __repr__(self):
        return (
            f"{type(self).__name__}(alias={self.alias!r}, "
            f"expression={self.get_expression()!r}, priority={self.priority})"
        )
