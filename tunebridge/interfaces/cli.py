import argparse
import json
import sys
import time
from typing import List, Optional

from tunebridge.application.factory import build_strategy
from tunebridge.crosscutting.config import ConfigError, Settings, setup_config
from tunebridge.crosscutting.logging import get_logger, log_error, setup_logging
from tunebridge.domain.entities import platform_name
from tunebridge.domain.errors import ProviderFault
from tunebridge.interfaces.serializers import matches_to_list, track_to_dict

EXIT_OK = 0
EXIT_FAULT = 1
EXIT_USAGE = 2


class CLI:
    """Command Line Interface for TuneBridge."""

    def __init__(self, strategy=None, settings: Optional[Settings] = None):
        """Initialize CLI.

        Args:
            strategy: Preconfigured ResolutionStrategy; built from settings if omitted
            settings: Preloaded settings; read from the environment if omitted
        """
        # Do not auto-load .env to keep tests deterministic
        self.parser = self._create_parser()
        self.strategy = strategy
        self.settings = settings
        self._start_time = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog='tunebridge',
            description='Resolve music queries into playable tracks across federated providers'
        )
        parser.add_argument(
            '--log-level',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            default=None,
            help='Set logging level (default from TUNEBRIDGE_LOG_LEVEL or INFO)'
        )
        parser.add_argument(
            '--env-file',
            default=None,
            help='Path to a .env file with TUNEBRIDGE_* settings'
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        for name, help_text in (('search', 'Search and print the winning result page'),
                                ('track', 'Resolve a query to one playable track')):
            sub = subparsers.add_parser(name, help=help_text)
            sub.add_argument('--song', default='', help='Song title')
            sub.add_argument('--artist', default='', help='Artist name')
            sub.add_argument('--json', action='store_true', help='Print JSON instead of text')

        detail_parser = subparsers.add_parser('detail', help='Resolve a continuation key to a playable track')
        detail_parser.add_argument('key', help='Continuation key from a search result')

        lyrics_parser = subparsers.add_parser('lyrics', help='Fetch lyrics for a continuation key')
        lyrics_parser.add_argument('key', help='Continuation key from a search result')

        subparsers.add_parser('interfaces', help='List enabled (platform, provider) pairs in probe order')

        return parser

    def _validate_arguments(self, args: argparse.Namespace) -> None:
        """Validate CLI arguments."""
        if args.command in ('search', 'track'):
            if not args.song.strip() and not args.artist.strip():
                self.parser.error(f"{args.command}: --song or --artist is required")

    def _load(self, args: argparse.Namespace) -> None:
        if self.settings is None:
            self.settings = setup_config(args.env_file)
        setup_logging(args.log_level or self.settings.log_level)
        get_logger(__name__).debug(f"Configuration: {self.settings.summary()}")
        if self.strategy is None:
            self.strategy = build_strategy(self.settings)

    def _search(self, args: argparse.Namespace) -> None:
        matches = self.strategy.resolve_search(args.song, args.artist)
        if args.json:
            print(json.dumps(matches_to_list(matches), ensure_ascii=False, indent=2))
            return
        for index, match in enumerate(matches, start=1):
            print(f"{index:>2}. {match.title} - {match.artist} "
                  f"[{platform_name(match.platform)} via {match.provider.value}]")
            print(f"    {match.key}")

    def _track(self, args: argparse.Namespace) -> None:
        track = self.strategy.resolve_track(args.song, args.artist)
        if args.json:
            print(json.dumps(track_to_dict(track), ensure_ascii=False, indent=2))
            return
        print(f"{track.title} - {track.artist} [{platform_name(track.platform)} via {track.provider.value}]")
        print(f"audio: {track.audio_url}")
        print(f"key:   {track.key}")

    def _detail(self, args: argparse.Namespace) -> None:
        track = self.strategy.resolve_detail(args.key)
        print(json.dumps(track_to_dict(track), ensure_ascii=False, indent=2))

    def _lyrics(self, args: argparse.Namespace) -> None:
        print(self.strategy.resolve_lyrics(args.key))

    def _list_interfaces(self, args: argparse.Namespace) -> None:
        print("Enabled interfaces (probe order):")
        print("-" * 50)
        registry = self.strategy.registry
        for interface in self.strategy.interfaces:
            status = "[READY]" if registry.has(interface.provider) else "[NO BASE URL]"
            print(f"{interface.label}: {platform_name(interface.platform)} {status}")

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run the CLI and return the exit code."""
        self._start_time = time.time()
        logger = get_logger(__name__)

        try:
            args = self.parser.parse_args(argv)
        except SystemExit as e:
            return EXIT_USAGE if e.code else EXIT_OK

        if not args.command:
            self.parser.print_help()
            return EXIT_USAGE

        try:
            self._validate_arguments(args)
        except SystemExit:
            return EXIT_USAGE

        commands = {
            'search': self._search,
            'track': self._track,
            'detail': self._detail,
            'lyrics': self._lyrics,
            'interfaces': self._list_interfaces,
        }

        try:
            self._load(args)
            commands[args.command](args)
            return EXIT_OK
        except ConfigError as e:
            logger.error(f"Configuration error: {e}")
            print(f"error: {e}", file=sys.stderr)
            return EXIT_USAGE
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return EXIT_USAGE
        except ProviderFault as e:
            log_error(logger, f"{args.command} failed", e, command=args.command)
            print(f"error: {e}", file=sys.stderr)
            return EXIT_FAULT
        except KeyboardInterrupt:
            logger.warning("Operation cancelled by user")
            return 130
        finally:
            duration = time.time() - self._start_time
            logger.debug(f"CLI execution time: {duration:.2f}s")


def main():
    """Main entry point."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
