import sys
import typing
from logging import Logger

from ccrop.images.clipboard import Clipboard, copy_to_clipboard
from ccrop.images.fetcher import ImageFetcher
from ccrop.images.image_processor import circular_crop, decode_image, save_image
from ccrop.models import CropError, CropRequest


def run(request: CropRequest,
        fetcher: ImageFetcher,
        clipboard_factory: typing.Callable[[], Clipboard],
        logger: Logger,
        out: typing.TextIO | None = None) -> CropError | None:
    """
    Downloads, crops and saves the image, then copies it to the clipboard unless it was disabled.
    The first failed step stops the run, files written before it are left in place.
    :param request: Parsed command line request
    :param fetcher: Image fetcher
    :param clipboard_factory: Creates the clipboard, called only when the clipboard step runs
    :param logger: Logger
    :param out: Stream for progress lines, stdout by default
    :return: `None` on success or the first :class:`CropError`
    """
    out = out or sys.stdout

    print("Downloading...", file=out)
    downloaded = fetcher.fetch(request.url)
    if downloaded.error:
        return downloaded.error

    print("Processing...", file=out)
    decoded = decode_image(downloaded.value, logger)
    if decoded.error:
        return decoded.error

    cropped = circular_crop(decoded.value)
    logger.debug(f"Cropped to {cropped.size[0]}x{cropped.size[1]}")

    saved = save_image(cropped, request.output, logger)
    if saved.error:
        return saved.error
    print(f"Saved to {request.output}", file=out)

    if request.no_clipboard:
        logger.debug("Clipboard step is disabled")
        return None

    copied = copy_to_clipboard(cropped, clipboard_factory())
    return copied.error
