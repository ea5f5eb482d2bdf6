import time
from logging import Logger
from urllib import parse

from urllib3 import BaseHTTPResponse, PoolManager, Retry, exceptions
from urllib3.exceptions import HTTPError

from ccrop.config import DOWNLOAD_TIMEOUT_SECONDS
from ccrop.models import ErrorKind, StepResult

_ALLOWED_SCHEMES: tuple[str, ...] = ("http://", "https://")
_MAX_REDIRECTS: int = 10
_CHUNK_SIZE: int = 64 * 1024


def _create_pool_manager() -> PoolManager:
    # single attempt, redirects are followed by ImageFetcher within the download deadline
    return PoolManager(retries=Retry(total=0, redirect=False))


def _remaining_seconds(deadline: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise exceptions.TimeoutError(f"Download did not complete within {DOWNLOAD_TIMEOUT_SECONDS:g} seconds")
    return remaining


def _limit_read_timeout(response: BaseHTTPResponse, deadline: float) -> None:
    remaining = _remaining_seconds(deadline)
    sock = getattr(getattr(response, "connection", None), "sock", None)
    if sock is not None:
        sock.settimeout(remaining)


class ImageFetcher:
    """
    Downloads source images over HTTP(S)
    """
    _http: PoolManager
    _user_agent: str | None
    _logger: Logger

    def __init__(self, logger: Logger, http: PoolManager | None = None, user_agent: str | None = None):
        assert logger is not None, "logger is required"

        self._http = http or _create_pool_manager()
        self._user_agent = user_agent
        self._logger = logger

    @staticmethod
    def validate_url(url: str) -> str | None:
        """
        Checks that url uses a supported scheme
        :param url: Source url
        :return: Error message or `None` when url is acceptable
        """
        if not url.startswith(_ALLOWED_SCHEMES):
            return "URL must start with http:// or https://"
        return None

    def fetch(self, url: str) -> StepResult[bytes]:
        """
        Performs a single GET request and returns the response body.
        Redirects and the body read share one deadline of DOWNLOAD_TIMEOUT_SECONDS.
        :param url: Source url, must start with http:// or https://
        :return: :class:`StepResult` with raw bytes or an error
        """
        url_error = self.validate_url(url)
        if url_error:
            return StepResult.fail(ErrorKind.INVALID_URL, url_error)

        deadline = time.monotonic() + DOWNLOAD_TIMEOUT_SECONDS
        response: BaseHTTPResponse | None = None
        try:
            response, url = self._open(url, deadline)
            if response is None:
                return StepResult.fail(ErrorKind.NETWORK, f"Exceeded {_MAX_REDIRECTS} redirects for url: {url}")

            self._logger.debug(f"Response status: {response.status}")
            if not 200 <= response.status < 300:
                reason = f" {response.reason}" if response.reason else ""
                return StepResult.fail(ErrorKind.NETWORK, f"HTTP {response.status}{reason} for url: {url}")

            data = self._read_body(response, deadline)
            self._logger.debug(f"Downloaded {len(data)} bytes")
            return StepResult(value=data)
        except HTTPError as e:
            return StepResult.fail(ErrorKind.NETWORK, str(e))
        finally:
            if response is not None:
                response.release_conn()

    def _open(self, url: str, deadline: float) -> tuple[BaseHTTPResponse | None, str]:
        headers = {"User-Agent": self._user_agent} if self._user_agent else None
        for _ in range(_MAX_REDIRECTS + 1):
            self._logger.debug(f"GET {url}")
            response = self._http.request("GET", url, headers=headers, redirect=False, preload_content=False,
                                          timeout=_remaining_seconds(deadline))
            location = response.get_redirect_location()
            if not location:
                return response, url

            self._logger.debug(f"Redirect {response.status} to {location}")
            response.drain_conn()
            response.release_conn()
            url = parse.urljoin(url, location)

        return None, url

    @staticmethod
    def _read_body(response: BaseHTTPResponse, deadline: float) -> bytes:
        body = bytearray()
        while True:
            _limit_read_timeout(response, deadline)
            chunk = response.read1(_CHUNK_SIZE)
            if not chunk:
                break
            body.extend(chunk)
        return bytes(body)
