"""
Execution context handed to running jobs.

Plays the part of a command line for a job: it answers "was this
argument given explicitly, and with what value" and carries the stream
the job writes its output to.
"""

import argparse
import sys
from typing import Dict, Iterable, Optional, TextIO


class ExecutionContext:
    """Named input arguments plus an output stream."""

    def __init__(
        self,
        arguments: Optional[Dict[str, str]] = None,
        output: Optional[TextIO] = None
    ):
        self.arguments = dict(arguments or {})
        self.output = output or sys.stdout

    @classmethod
    def from_namespace(cls, namespace: argparse.Namespace, output: Optional[TextIO] = None) -> 'ExecutionContext':
        """Build a context from parsed command-line arguments."""
        return cls(vars(namespace), output)

    @classmethod
    def from_pairs(cls, pairs: Optional[Iterable[str]], output: Optional[TextIO] = None) -> 'ExecutionContext':
        """
        Build a context from ``key=value`` strings.

        Args:
            pairs: Strings such as ``"target=db2"``
            output: Output stream (defaults to stdout)

        Raises:
            ValueError: If a pair has no ``=`` or an empty key
        """
        arguments = {}
        for pair in pairs or []:
            key, sep, value = pair.partition('=')
            if not sep or not key:
                raise ValueError(f"Invalid argument '{pair}', expected key=value")
            arguments[key] = value
        return cls(arguments, output)

    def has_argument(self, key: str) -> bool:
        """True if the argument was supplied with a value."""
        return self.arguments.get(key) is not None

    def get_argument(self, key: str) -> Optional[str]:
        value = self.arguments.get(key)
        if value is None:
            return None
        return str(value)

    def write(self, text: str):
        self.output.write(text)

    def writeln(self, line: str = ''):
        self.output.write(f"{line}\n")
