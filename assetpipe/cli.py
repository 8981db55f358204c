"""Command line entry point.

Usage:
    assetpipe [options] [task ...]

Example:
    assetpipe                      # build, serve and watch
    assetpipe build --production   # one-shot production build
    assetpipe --list
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_settings
from .exceptions import ConfigError
from .pipeline import Pipeline
from .tasks import BuildContext


LOG_FORMAT = '[%(asctime)s] %(name)s: %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Build, serve and watch static site assets',
        prog='assetpipe',
    )
    parser.add_argument(
        'tasks',
        nargs='*',
        default=['default'],
        help='Tasks to run in order (default: default)',
    )
    parser.add_argument(
        '--production',
        action='store_true',
        help='Minify and compress instead of emitting source maps',
    )
    parser.add_argument(
        '-c', '--config',
        type=str,
        default='config.yml',
        help='Path to the settings file (default: config.yml)',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log debug output',
    )
    parser.add_argument(
        '--list',
        action='store_true',
        help='List available tasks and exit',
    )
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def main(args: Optional[List[str]] = None) -> int:
    """CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parsed = build_parser().parse_args(args)
    configure_logging(parsed.verbose)

    # Settings problems are fatal before any task runs
    try:
        settings = load_settings(Path(parsed.config))
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    pipeline = Pipeline(BuildContext(settings, production=parsed.production))

    if parsed.list:
        for line in pipeline.describe():
            print(line)
        return 0

    try:
        result = pipeline.run(parsed.tasks)
        if result.succeeded and pipeline.dev_server.running:
            pipeline.dev_server.wait()
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130

    if not result.succeeded:
        for failure in result.failures:
            print(f"Error: '{failure.name}' failed: {failure.error}", file=sys.stderr)
        if result.skipped:
            print(f"Skipped: {', '.join(result.skipped)}", file=sys.stderr)
        return 1

    print(f"Completed {len(result.completed)} task(s)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
