import argparse
import json
import sys
import logging
import signal
import time
from typing import List, Optional
from datetime import datetime
from dotenv import load_dotenv

from app.crosscutting.config import ConfigError, load_config
from app.crosscutting.logging import setup_logging
from app.interfaces.handler import parse_songs, run_update


class CLI:
    """Command Line Interface for radiosync."""

    def __init__(self):
        """Initialize CLI."""
        # .env is loaded in main() only, to keep tests deterministic
        self.parser = self._create_parser()
        self._setup_signal_handlers()
        self._start_time = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog='radiosync',
            description='Keep a Spotify playlist in sync with what radio stations play'
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        update_parser = subparsers.add_parser('update', help='Update the playlist once')
        update_parser.add_argument(
            '--song',
            action='append',
            dest='songs',
            metavar='"ARTIST - TITLE"',
            help='Add this song instead of querying the radio sources (repeatable)'
        )
        update_parser.add_argument(
            '--config',
            action='append',
            dest='config_files',
            metavar='FILE',
            help='JSON config file; later files override earlier ones (repeatable)'
        )
        update_parser.add_argument(
            '--run-id',
            help='Correlation id for this run (default: generated)'
        )
        update_parser.add_argument(
            '--log-level',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            default='INFO',
            help='Set logging level'
        )
        update_parser.add_argument(
            '--log-file',
            help='Also write structured logs to this file'
        )

        config_parser = subparsers.add_parser('show-config', help='Print the effective configuration')
        config_parser.add_argument(
            '--config',
            action='append',
            dest='config_files',
            metavar='FILE',
            help='JSON config file (repeatable)'
        )
        config_parser.add_argument(
            '--log-level',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            default='WARNING',
            help='Set logging level'
        )
        config_parser.add_argument(
            '--log-file',
            help='Also write structured logs to this file'
        )

        return parser

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            logger = logging.getLogger(__name__)
            logger.warning(f"Received signal {signum}, shutting down...")
            self._cleanup_resources()
            sys.exit(130)  # Standard exit code for signal termination

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _cleanup_resources(self) -> None:
        """Log execution time on exit."""
        logger = logging.getLogger(__name__)
        if self._start_time:
            duration = time.time() - self._start_time
            logger.debug(f"CLI execution time: {duration:.2f}s")

    def _create_run_id(self) -> str:
        """Create unique run identifier."""
        return f"radiosync_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

    def _update_playlist(self, args: argparse.Namespace) -> None:
        """Run one playlist update. Degraded runs still exit with 0."""
        logger = logging.getLogger(__name__)

        new_songs = parse_songs(args.songs) if args.songs else None
        result = run_update(
            new_songs,
            config_files=args.config_files,
            run_id=args.run_id or self._create_run_id()
        )

        if result is None:
            print("Playlist update did not run; see logs for details")
        elif result.aborted:
            print(f"Playlist update aborted: {result.abort_reason}")
        else:
            print(f"Playlist updated: {result.added_tracks} added, {result.removed_tracks} removed "
                  f"({result.candidates} candidates, {result.resolved_tracks} resolved)")
            logger.debug(f"Run summary: {result.to_dict()}")

    def _show_config(self, args: argparse.Namespace) -> None:
        """Print the effective configuration with secrets masked."""
        try:
            config = load_config(args.config_files)
        except ConfigError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            sys.exit(1)

        print(json.dumps(config.summary(), indent=2))

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Run the CLI."""
        self._start_time = time.time()

        try:
            args = self.parser.parse_args(argv)

            if not args.command:
                self.parser.print_help()
                sys.exit(1)

            setup_logging(args.log_level, log_file=args.log_file)

            if args.command == 'update':
                self._update_playlist(args)
            elif args.command == 'show-config':
                self._show_config(args)

        except KeyboardInterrupt:
            logger = logging.getLogger(__name__)
            logger.warning("Operation cancelled by user")
            sys.exit(130)
        finally:
            self._cleanup_resources()


def main():
    """Main entry point."""
    load_dotenv()
    cli = CLI()
    cli.run()


if __name__ == '__main__':
    main()
