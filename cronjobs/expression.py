"""
Cron expression evaluation.

Thin layer over croniter. Expressions are standard five-field crontab
patterns (minute hour day-of-month month day-of-week). Matching itself is
left to croniter; this module only enforces the five-field shape and
picks the instant to test against.
"""

import logging
from datetime import datetime
from typing import Optional

from croniter import croniter, CroniterBadCronError

logger = logging.getLogger(__name__)

FIELD_NAMES = ('minute', 'hour', 'day_of_month', 'month', 'day_of_week')
DEFAULT_EXPRESSION = ' '.join('*' for _ in FIELD_NAMES)


def build_expression(
    minute: str = '*',
    hour: str = '*',
    day_of_month: str = '*',
    month: str = '*',
    day_of_week: str = '*'
) -> str:
    """Join the five cron fields with single spaces."""
    return ' '.join([minute, hour, day_of_month, month, day_of_week])


def validate_expression(expression: str):
    """
    Validate a five-field cron expression.

    Args:
        expression: Cron expression (e.g., "0 2 * * *")

    Raises:
        CroniterBadCronError: If the expression does not have exactly five
            fields or croniter rejects one of them
    """
    parts = expression.split()
    if len(parts) != len(FIELD_NAMES):
        raise CroniterBadCronError(
            f"Cron expression must have {len(FIELD_NAMES)} fields, "
            f"got {len(parts)}: '{expression}'"
        )

    # Constructing the iterator parses and range-checks every field
    croniter(expression)


def is_valid_expression(expression: str) -> bool:
    """Check an expression without raising."""
    try:
        validate_expression(expression)
    except ValueError:
        return False
    return True


def is_due(expression: str, now: Optional[datetime] = None) -> bool:
    """
    Check whether an instant matches a cron expression.

    Matching is done at minute precision: any instant inside a matching
    minute is due.

    Args:
        expression: Five-field cron expression
        now: Instant to test (defaults to the current local time)

    Returns:
        True if the expression matches the instant

    Raises:
        CroniterBadCronError: If the expression is malformed
    """
    validate_expression(expression)
    if now is None:
        now = datetime.now()

    due = croniter.match(expression, now)
    logger.debug(f"Expression '{expression}' at {now.isoformat()}: due={due}")
    return due


def next_run_time(expression: str, now: Optional[datetime] = None) -> datetime:
    """
    Get the next instant after ``now`` matching the expression.

    Raises:
        CroniterBadCronError: If the expression is malformed
    """
    validate_expression(expression)
    if now is None:
        now = datetime.now()
    return croniter(expression, now).get_next(datetime)
