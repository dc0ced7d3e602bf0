"""
Argument strings for cron jobs.

Jobs receive their configured arguments as a single string of
``name:value`` tokens, e.g. ``"target:db1 retries:3 mode:full-sync"``.
Anything between tokens is ignored, so tokens are usually separated by
whitespace. The same format is used to print a job's arguments back.
"""

import re
from typing import Dict, Optional

# \w is ASCII only: names are [A-Za-z0-9_]+, values [A-Za-z0-9_+-]+
ARGUMENT_PATTERN = re.compile(r'(?P<argument>\w+):(?P<value>[\w+\-]+)', re.ASCII)


def parse_arguments(text: Optional[str]) -> Dict[str, str]:
    """
    Parse an argument string into a mapping.

    Every ``name:value`` match is collected. Text that does not match
    the grammar is dropped silently, and when a name appears twice the
    last value wins.

    Args:
        text: Argument string (None or empty gives an empty mapping)

    Returns:
        Dict of argument name to value, in order of first appearance
    """
    arguments = {}
    if not text:
        return arguments

    for match in ARGUMENT_PATTERN.finditer(text):
        arguments[match.group('argument')] = match.group('value')

    return arguments


def format_arguments(arguments: Dict[str, str]) -> str:
    """Serialize a mapping back to ``name:value`` tokens joined by spaces."""
    return ' '.join(f"{key}:{value}" for key, value in arguments.items())
