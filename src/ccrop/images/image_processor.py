import math
from io import BytesIO
from logging import Logger
from pathlib import Path

import PIL
from PIL import Image

from ccrop.models import ErrorKind, IMAGE_MODE_RGBA, StepResult

_mask_mode = 'L'
_transparent: tuple[int, int, int, int] = (0, 0, 0, 0)


def decode_image(data: bytes, logger: Logger) -> StepResult[Image.Image]:
    """
    Decodes raw bytes into an RGBA image, format is sniffed by Pillow
    :param data: Encoded image bytes
    :param logger: Logger
    :return: :class:`StepResult` with RGBA image or decode error
    """
    assert data is not None, "data cannot be None"

    try:
        with Image.open(BytesIO(data)) as im:
            logger.debug(f"Decoding {im.format} image {im.size[0]}x{im.size[1]}, mode {im.mode}")
            im.load()
            if im.width == 0 or im.height == 0:
                return StepResult.fail(ErrorKind.IMAGE_DECODE,
                                       f"image has zero dimension {im.width}x{im.height}")
            return StepResult(value=im.convert(IMAGE_MODE_RGBA))
    except (PIL.UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        return StepResult.fail(ErrorKind.IMAGE_DECODE, str(e))


def _inside(dx: float, dy: float, radius: float) -> bool:
    return math.sqrt(dx * dx + dy * dy) <= radius


def _row_span(y: int, size: int, radius: float) -> tuple[int, int] | None:
    """ First and last column of row y inside the circle, the inside of a row is always contiguous """
    dy = y - radius
    if abs(dy) > radius:
        return None

    half_chord = math.sqrt(radius * radius - dy * dy)
    first = max(0, math.ceil(radius - half_chord))
    last = min(size - 1, math.floor(radius + half_chord))

    # float rounding of the chord can be off by one pixel, the distance rule decides the edges
    while first > 0 and _inside(first - 1 - radius, dy, radius):
        first -= 1
    while first <= last and not _inside(first - radius, dy, radius):
        first += 1
    while last < size - 1 and _inside(last + 1 - radius, dy, radius):
        last += 1
    while last >= first and not _inside(last - radius, dy, radius):
        last -= 1

    return (first, last) if first <= last else None


def _circle_mask(size: int) -> Image.Image:
    radius = size / 2.0

    mask = bytearray(size * size)
    for y in range(size):
        span = _row_span(y, size, radius)
        if span:
            first, last = span
            row_offset = y * size
            mask[row_offset + first:row_offset + last + 1] = b'\xff' * (last - first + 1)

    return Image.frombytes(_mask_mode, (size, size), bytes(mask))


def circular_crop(image: Image.Image) -> Image.Image:
    """
    Crops the centered square of the image and clears every pixel outside the inscribed circle.
    Pixels inside the circle (boundary included) keep their RGBA value, the rest become (0, 0, 0, 0).
    """
    source = image if image.mode == IMAGE_MODE_RGBA else image.convert(IMAGE_MODE_RGBA)
    width, height = source.size

    size = min(width, height)
    x_offset = (width - size) // 2
    y_offset = (height - size) // 2

    square = source.crop((x_offset, y_offset, x_offset + size, y_offset + size))
    background = Image.new(IMAGE_MODE_RGBA, (size, size), _transparent)
    return Image.composite(square, background, _circle_mask(size))


def save_image(image: Image.Image, output_path: str | Path, logger: Logger) -> StepResult[Path]:
    """
    Encodes the image into a file, the format is selected by the file extension
    :param image: Image to save
    :param output_path: Destination file, created or overwritten
    :param logger: Logger
    :return: :class:`StepResult` with the written path or file write error
    """
    path = Path(output_path)
    try:
        image.save(path)
    except (ValueError, KeyError, OSError) as e:
        return StepResult.fail(ErrorKind.FILE_WRITE, f"Failed to save to '{output_path}': {e}")

    logger.debug(f"Image {image.size[0]}x{image.size[1]} was written to {path}")
    return StepResult(value=path)
