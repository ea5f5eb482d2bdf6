import argparse
import sys
import typing

from loguru import logger

from ccrop import __version__
from ccrop.config import AppSettings, DEFAULT_OUTPUT, get_app_settings
from ccrop.images.clipboard import SystemClipboard
from ccrop.images.fetcher import ImageFetcher
from ccrop.models import CropRequest
from ccrop.pipeline import run


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ccrop", description="Apply circular crop to images from URLs")
    parser.add_argument("url", help="URL of the image to download and crop")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT,
                        help=f"Output file path (defaults to {DEFAULT_OUTPUT})")
    parser.add_argument("--no-clipboard", action="store_true", help="Skip copying to clipboard")
    parser.add_argument("-v", "--verbose", action="store_true", help="Write debug logs to stderr")
    parser.add_argument("--version", action="version", version=f"ccrop {__version__}")
    return parser


def parse_request(argv: typing.Sequence[str] | None = None) -> tuple[CropRequest, bool]:
    args = _create_parser().parse_args(argv)
    return CropRequest(url=args.url, output=args.output, no_clipboard=args.no_clipboard), args.verbose


def configure_logger(app_settings: AppSettings, verbose: bool = False):
    level = "DEBUG" if verbose else app_settings.log_level.upper()
    logger.remove()
    # stdout carries progress lines only
    logger.add(sys.stderr, level=level, format=app_settings.log_fmt)


def main(argv: typing.Sequence[str] | None = None) -> int:
    request, verbose = parse_request(argv)

    app_settings = get_app_settings()
    configure_logger(app_settings, verbose)

    l = logger.bind(source="core")
    fetcher = ImageFetcher(logger.bind(source="fetcher"), user_agent=app_settings.user_agent)
    error = run(request, fetcher, lambda: SystemClipboard(logger.bind(source="clipboard")), l)
    if error:
        l.debug(f"Run failed at {error.kind} step")
        print(f"Error: {error}", file=sys.stderr)
        return 1

    return 0


def run_cli():
    sys.exit(main())


if __name__ == "__main__":
    run_cli()
