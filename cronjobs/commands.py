"""
Shell command jobs.

ShellCommandCron runs a shell command on its schedule. The command is a
template: ``{name}`` placeholders are filled with the job's resolved
arguments, so ``"backup.sh --target {target}"`` with the configured
argument string ``"target:db1"`` runs ``backup.sh --target db1`` unless
the execution context supplies another target.
"""

import logging
import os
import signal
import string
import subprocess
import threading
from typing import Optional

from cronjobs.job import CronJob

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3600
READER_JOIN_TIMEOUT = 5


class CommandError(Exception):
    """Raised when a shell command job cannot be run."""
    pass


class ShellCommandCron(CronJob):
    """Cron job executing a shell command template."""

    def __init__(self, command: str = '', timeout: Optional[int] = DEFAULT_TIMEOUT, **kwargs):
        """
        Initialize a shell command job.

        Args:
            command: Shell command template with ``{name}`` placeholders
            timeout: Timeout in seconds (None for no limit)
            **kwargs: Schedule, priority, arguments and alias (see CronJob)
        """
        super().__init__(**kwargs)
        self.command = command
        self.timeout = timeout

    def render_command(self, context=None) -> str:
        """
        Fill the command placeholders with resolved arguments.

        Raises:
            CommandError: If a placeholder has no value
        """
        values = {}
        for _, field_name, _, _ in string.Formatter().parse(self.command):
            if field_name is None or field_name in values:
                continue
            value = self.get_argument(context, field_name)
            if value is None:
                raise CommandError(
                    f"No value for argument '{field_name}' in command: {self.command}"
                )
            values[field_name] = value
        return self.command.format(**values)

    def execute(self, context=None) -> int:
        """
        Run the command and stream its output.

        Returns:
            Process return code

        Raises:
            CommandError: If the command times out or cannot be started
        """
        command = self.render_command(context)
        log_prefix = f"[{self.alias}] " if self.alias else ""
        logger.info(f"{log_prefix}Executing command: {command}")

        try:
            process = subprocess.Popen(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                start_new_session=True  # own process group, killed as a whole on timeout
            )
        except OSError as e:
            raise CommandError(f"Command could not be started: {e}") from e

        def read_stream(stream):
            for line in stream:
                line = line.rstrip('\n')
                logger.info(f"{log_prefix}{line}")
                if context is not None:
                    context.writeln(line)

        # Read output in a thread so the timeout applies while it streams
        reader = threading.Thread(target=read_stream, args=(process.stdout,), daemon=True)
        reader.start()

        try:
            process.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            os.killpg(process.pid, signal.SIGKILL)
            process.wait()
            logger.error(f"{log_prefix}Command timed out after {self.timeout}s: {command}")
            raise CommandError(f"Command timed out after {self.timeout}s") from e
        finally:
            reader.join(timeout=READER_JOIN_TIMEOUT)
            process.stdout.close()

        if process.returncode != 0:
            logger.warning(f"{log_prefix}Command exited with code {process.returncode}")
        return process.returncode
