"""
Command-line interface for cron jobs.

Provides commands for:
- Running the due jobs once (meant to be called from a system crontab)
- Keeping a runner alive that checks every minute
- Listing jobs and forcing a single job to run
- Managing configuration
"""

import argparse
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from cronjobs.config import CronConfig
from cronjobs.context import ExecutionContext
from cronjobs.expression import next_run_time
from cronjobs.job import STATUS_OK, STATUS_ERROR
from cronjobs.runner import CronRunner

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = None, verbose: bool = False, level_name: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)


def _load_runner(args) -> CronRunner:
    config = CronConfig(args.config)
    runner = CronRunner()
    runner.load_config(config)
    return runner


def cmd_run(args) -> int:
    """Run every due job once."""
    setup_logging(verbose=args.verbose)

    try:
        runner = _load_runner(args)
        results = runner.run_due()
    except Exception as e:
        logger.error(f"Cron pass failed: {e}", exc_info=args.verbose)
        return STATUS_ERROR

    failed = [alias for alias, status in results.items() if status != STATUS_OK]
    if failed:
        logger.warning(f"Failed cron(s): {', '.join(failed)}")
        return STATUS_ERROR
    return STATUS_OK


def cmd_start(args) -> int:
    """Start the minute loop."""
    try:
        config = CronConfig(args.config)
    except Exception as e:
        setup_logging(verbose=args.verbose)
        logger.error(f"Failed to load configuration: {e}")
        return STATUS_ERROR

    setup_logging(
        log_file=args.log_file or config.logging.file,
        verbose=args.verbose,
        level_name=config.logging.level
    )

    logger.info("Starting cron runner...")

    try:
        runner = CronRunner()
        runner.load_config(config)
        runner.start(foreground=args.foreground)

        if not args.foreground:
            logger.info("Cron runner is running in the background. Press Ctrl+C to stop.")
            try:
                while runner.is_running():
                    time.sleep(60)
            except (KeyboardInterrupt, SystemExit):
                logger.info("Shutting down...")
                runner.stop()

    except Exception as e:
        logger.error(f"Failed to start cron runner: {e}", exc_info=True)
        return STATUS_ERROR

    return STATUS_OK


def cmd_list(args) -> int:
    """List configured jobs."""
    setup_logging(verbose=args.verbose)

    try:
        runner = _load_runner(args)
    except Exception as e:
        logger.error(f"Failed to load crons: {e}")
        return STATUS_ERROR

    jobs = runner.jobs()
    if not jobs:
        print("No crons registered")
        return STATUS_OK

    now = datetime.now()
    print(f"\n{len(jobs)} cron(s):\n")
    for job in jobs:
        expression = job.get_expression()
        print(f"  Alias:     {job.get_alias()}")
        print(f"  Schedule:  {expression}")
        print(f"  Priority:  {job.get_priority()}")
        print(f"  Arguments: {job.get_arguments() or '-'}")
        print(f"  Due now:   {'yes' if job.is_due(now) else 'no'}")
        print(f"  Next run:  {next_run_time(expression, now).isoformat()}")
        print()
    return STATUS_OK


def cmd_run_job(args) -> int:
    """Force a single job to run."""
    setup_logging(verbose=args.verbose)

    try:
        runner = _load_runner(args)
        context = ExecutionContext.from_pairs(args.arg)
    except Exception as e:
        logger.error(f"Failed to load crons: {e}")
        return STATUS_ERROR

    job = runner.get(args.alias)
    if job is None:
        logger.error(f"Cron '{args.alias}' not found")
        return STATUS_ERROR

    status = runner.run_job(job, context)
    # Signal-killed processes report negative codes
    if not 0 <= status <= 255:
        logger.warning(f"Cron '{args.alias}' returned status {status}")
        return STATUS_ERROR
    return status


def cmd_init(args) -> int:
    """Write the default configuration file."""
    setup_logging(verbose=args.verbose)

    try:
        config = CronConfig(args.config)
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        return STATUS_ERROR

    if config.config_path.exists() and not args.force:
        logger.warning(f"Configuration already exists at {config.config_path} (use --force to overwrite)")
        return STATUS_ERROR

    config._load_defaults()
    config.save()
    print(f"✓ Configuration written to {config.config_path}")
    return STATUS_OK


def cmd_show_config(args) -> int:
    """Print the configuration as JSON."""
    setup_logging(verbose=args.verbose)

    try:
        config = CronConfig(args.config)
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        return STATUS_ERROR

    print(json.dumps(config.to_dict(), indent=2))

    errors = config.validate()
    if errors:
        print("\nValidation errors:")
        for error in errors:
            print(f"  - {error}")
        return STATUS_ERROR
    return STATUS_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cron-jobs',
        description='Run scheduled cron jobs'
    )
    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file (default: ~/.cron_jobs/cron_config.json)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    run_parser = subparsers.add_parser('run', help='Run all due crons once')
    run_parser.set_defaults(func=cmd_run)

    start_parser = subparsers.add_parser('start', help='Run due crons every minute')
    start_parser.add_argument(
        '--foreground', '-f',
        action='store_true',
        help='Run with a blocking scheduler'
    )
    start_parser.add_argument(
        '--log-file',
        type=str,
        help='Log file path (default: from configuration)'
    )
    start_parser.set_defaults(func=cmd_start)

    list_parser = subparsers.add_parser('list', help='List crons')
    list_parser.set_defaults(func=cmd_list)

    run_job_parser = subparsers.add_parser('run-job', help='Run one cron now, due or not')
    run_job_parser.add_argument('alias', help='Cron alias')
    run_job_parser.add_argument(
        '--arg',
        action='append',
        default=[],
        metavar='KEY=VALUE',
        help='Argument overriding the configured one (repeatable)'
    )
    run_job_parser.set_defaults(func=cmd_run_job)

    init_parser = subparsers.add_parser('init', help='Write default configuration')
    init_parser.add_argument('--force', action='store_true', help='Overwrite existing configuration')
    init_parser.set_defaults(func=cmd_init)

    show_config_parser = subparsers.add_parser('show-config', help='Show configuration')
    show_config_parser.set_defaults(func=cmd_show_config)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == '__main__':
    main()
