import enum
import typing
from dataclasses import dataclass

T = typing.TypeVar("T")

IMAGE_MODE_RGBA: str = "RGBA"
""" Pixel mode of every image passed between pipeline steps """


class ErrorKind(enum.StrEnum):
    INVALID_URL = enum.auto()
    NETWORK = enum.auto()
    IMAGE_DECODE = enum.auto()
    FILE_WRITE = enum.auto()
    CLIPBOARD = enum.auto()


_error_prefixes: dict[ErrorKind, str] = {
    ErrorKind.INVALID_URL: "Invalid URL",
    ErrorKind.NETWORK: "Failed to download image",
    ErrorKind.IMAGE_DECODE: "Failed to decode image",
    ErrorKind.FILE_WRITE: "Failed to write output file",
    ErrorKind.CLIPBOARD: "Failed to copy image to clipboard",
}


@dataclass(frozen=True, slots=True)
class CropError:
    kind: ErrorKind
    """ Which pipeline stage failed """
    message: str
    """ Human-readable reason, usually the underlying library message """

    def __str__(self) -> str:
        return f"{_error_prefixes[self.kind]}: {self.message}"


@dataclass(frozen=True, slots=True)
class StepResult(typing.Generic[T]):
    """ Outcome of a single pipeline step, either a value or an error """
    value: T | None = None
    error: CropError | None = None

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "StepResult[T]":
        return cls(value=None, error=CropError(kind=kind, message=message))


@dataclass(frozen=True, slots=True)
class CropRequest:
    url: str
    """ Source image URL, http:// or https:// """
    output: str = "output.png"
    """ Destination path, format is picked by the extension """
    no_clipboard: bool = False
    """ Skip the clipboard step """
