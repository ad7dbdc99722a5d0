"""vsixgallery CLI: generate a private gallery feed from a folder of .vsix files."""

import argparse
import logging
import sys
from pathlib import Path


def _configure_logging(quiet: bool, verbose: bool) -> None:
    level = logging.INFO
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vsixgallery",
        description="Generate an Atom feed for a private Visual Studio extension gallery"
    )
    parser.add_argument(
        "--input", "-i",
        dest="input_dir",
        type=Path,
        default=Path.cwd(),
        help="Directory containing .vsix files (defaults to the current directory)"
    )
    parser.add_argument(
        "--output", "-o",
        dest="output_path",
        type=Path,
        default=None,
        help="Path of the feed file (defaults to <input>/feed.xml)"
    )
    parser.add_argument(
        "--name",
        dest="title",
        default=None,
        help="Gallery title shown in Visual Studio"
    )
    parser.add_argument(
        "--exclude",
        default=None,
        help="Skip .vsix files whose path contains this text"
    )
    parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Also scan subdirectories"
    )
    parser.add_argument(
        "--source",
        default=None,
        help="Directory or base URL clients download the .vsix files from"
    )
    parser.add_argument(
        "--latest-only",
        action="store_true",
        help="Keep only the highest version of each extension"
    )
    parser.add_argument(
        "--version", "--client-version",
        dest="client_version",
        default=None,
        help="Target Visual Studio version (e.g. 17.0); controls extension pack encoding"
    )
    parser.add_argument(
        "--skip-invalid",
        action="store_true",
        help="Log and skip unreadable .vsix files instead of failing"
    )
    parser.add_argument(
        "--no-icons",
        dest="copy_icons",
        action="store_false",
        help="Do not copy extension icons next to the feed"
    )
    parser.add_argument(
        "--watch", "-w",
        action="store_true",
        help="Keep running and regenerate the feed when .vsix files change"
    )
    parser.add_argument(
        "--terminate", "-t",
        action="store_true",
        help="Exit right after generating the feed (default unless --watch)"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Seconds between change checks for --watch"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug output."
    )
    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.quiet, args.verbose)

    # Lazy import keeps --help fast
    from pydantic import ValidationError

    from .api import DEFAULT_CLIENT_VERSION, DEFAULT_TITLE, GalleryConfig, watch, write_feed
    from .kernel.errors import GalleryError

    input_dir = args.input_dir.resolve()
    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {input_dir}", file=sys.stderr)
        sys.exit(1)

    try:
        config = GalleryConfig(
            input_dir=input_dir,
            output_path=args.output_path.resolve() if args.output_path else None,
            title=args.title or DEFAULT_TITLE,
            exclude=args.exclude,
            recursive=args.recursive,
            source=args.source,
            latest_only=args.latest_only,
            client_version=args.client_version or DEFAULT_CLIENT_VERSION,
            skip_invalid=args.skip_invalid,
            copy_icons=args.copy_icons,
        )
    except ValidationError as e:
        print(f"Error: Invalid options: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        feed_path = write_feed(config)
    except (GalleryError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.quiet:
        print(f"[OK] {feed_path.name} generated")
        print(f"  Feed: {feed_path}")

    if args.watch and not args.terminate:
        if not args.quiet:
            print("Watching for file changes... (Ctrl+C to stop)")
        try:
            watch(config, interval=args.interval)
        except KeyboardInterrupt:
            pass

    return 0


if __name__ == "__main__":
    sys.exit(main())
