from abc import ABC, abstractmethod
from logging import Logger

import copykitten
from PIL import Image

from ccrop.models import ErrorKind, IMAGE_MODE_RGBA, StepResult


class Clipboard(ABC):
    """
    An abstract interface to the system clipboard
    """

    @abstractmethod
    def set_image(self, width: int, height: int, rgba: bytes) -> StepResult[None]:
        """
        Puts raw pixels into the clipboard
        :param width: Image width in pixels
        :param height: Image height in pixels
        :param rgba: Raw RGBA bytes, 4 bytes per pixel, row by row
        :return: :class:`StepResult` with an error if the clipboard rejected the image
        """
        pass


class SystemClipboard(Clipboard):
    _logger: Logger

    def __init__(self, logger: Logger):
        assert logger is not None, "logger is required"

        self._logger = logger

    def set_image(self, width: int, height: int, rgba: bytes) -> StepResult[None]:
        assert width > 0, "width must be greater than 0"
        assert height > 0, "height must be greater than 0"
        assert len(rgba) == width * height * 4, "rgba length doesn't match image size"

        try:
            copykitten.copy_image(rgba, width, height)
        except copykitten.CopykittenError as e:
            return StepResult.fail(ErrorKind.CLIPBOARD, str(e))

        self._logger.debug(f"Copied {width}x{height} image to clipboard")
        return StepResult()


def copy_to_clipboard(image: Image.Image, clipboard: Clipboard) -> StepResult[None]:
    rgba = image if image.mode == IMAGE_MODE_RGBA else image.convert(IMAGE_MODE_RGBA)
    width, height = rgba.size
    return clipboard.set_image(width, height, rgba.tobytes())
