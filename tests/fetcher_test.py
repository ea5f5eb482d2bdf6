from io import BytesIO
from unittest.mock import ANY, create_autospec, Mock

import pytest
from urllib3 import HTTPResponse, PoolManager
from urllib3.exceptions import MaxRetryError, NewConnectionError, ReadTimeoutError

from ccrop.images.fetcher import ImageFetcher
from ccrop.models import ErrorKind

_expected_url = 'https://example.com/images/icon.png'
_expected_body = b'\x89PNG fake body'


def __fake_response(status: int, body: bytes = b'', reason: str | None = None,
                    headers: dict[str, str] | None = None) -> HTTPResponse:
    return HTTPResponse(body=BytesIO(body), headers=headers or {'content-type': 'image/png'}, status=status,
                        version=11, reason=reason, preload_content=False, decode_content=False,
                        request_url=_expected_url)


def test_fetch_successful():
    # arrange
    http_mock = create_autospec(PoolManager)
    http_mock.request.return_value = __fake_response(200, _expected_body)
    fetcher = ImageFetcher(Mock(), http_mock)

    # act
    result = fetcher.fetch(_expected_url)

    # assert
    assert not result.error
    assert result.value == _expected_body
    http_mock.request.assert_called_once_with('GET', _expected_url, headers=None, redirect=False,
                                              preload_content=False, timeout=ANY)


def test_fetch_sends_user_agent():
    # arrange
    http_mock = create_autospec(PoolManager)
    http_mock.request.return_value = __fake_response(200, _expected_body)
    fetcher = ImageFetcher(Mock(), http_mock, user_agent='ccrop/test')

    # act
    fetcher.fetch(_expected_url)

    # assert
    http_mock.request.assert_called_once_with('GET', _expected_url, headers={'User-Agent': 'ccrop/test'},
                                              redirect=False, preload_content=False, timeout=ANY)


@pytest.mark.parametrize('url', ['ftp://example.com/a.png', 'example.com/a.png', 'HTTP://example.com/a.png',
                                 'file:///tmp/a.png', ''])
def test_fetch_invalid_url_does_no_io(url: str):
    # arrange
    http_mock = create_autospec(PoolManager)
    fetcher = ImageFetcher(Mock(), http_mock)

    # act
    result = fetcher.fetch(url)

    # assert
    assert result.value is None
    assert result.error.kind == ErrorKind.INVALID_URL
    assert 'http://' in result.error.message
    http_mock.request.assert_not_called()


@pytest.mark.parametrize('status', [404, 500, 304])
def test_fetch_non_success_status(status: int):
    # arrange
    http_mock = create_autospec(PoolManager)
    http_mock.request.return_value = __fake_response(status, b'not found', reason='Not Found')
    fetcher = ImageFetcher(Mock(), http_mock)

    # act
    result = fetcher.fetch(_expected_url)

    # assert
    assert result.value is None
    assert result.error.kind == ErrorKind.NETWORK
    assert str(status) in result.error.message
    assert _expected_url in result.error.message


@pytest.mark.parametrize('error', [
    MaxRetryError(None, _expected_url, NewConnectionError(None, 'Failed to resolve example.com')),
    ReadTimeoutError(None, _expected_url, 'Read timed out. (read timeout=30)'),
])
def test_fetch_transport_error(error: Exception):
    # arrange
    http_mock = create_autospec(PoolManager)
    http_mock.request.side_effect = error
    fetcher = ImageFetcher(Mock(), http_mock)

    # act
    result = fetcher.fetch(_expected_url)

    # assert
    assert result.value is None
    assert result.error.kind == ErrorKind.NETWORK
    assert result.error.message


def test_fetch_unexpected_error_is_raised():
    # arrange
    http_mock = create_autospec(PoolManager)
    http_mock.request.side_effect = RuntimeError('unit test error')
    fetcher = ImageFetcher(Mock(), http_mock)

    # act & assert
    with pytest.raises(RuntimeError):
        fetcher.fetch(_expected_url)


def test_fetch_follows_redirect():
    # arrange
    redirected_url = 'https://cdn.example.com/icon.png'
    http_mock = create_autospec(PoolManager)
    http_mock.request.side_effect = [__fake_response(302, headers={'location': redirected_url}),
                                     __fake_response(200, _expected_body)]
    fetcher = ImageFetcher(Mock(), http_mock)

    # act
    result = fetcher.fetch(_expected_url)

    # assert
    assert result.value == _expected_body
    assert http_mock.request.call_count == 2
    assert http_mock.request.call_args.args == ('GET', redirected_url)


def test_fetch_resolves_relative_redirect():
    # arrange
    http_mock = create_autospec(PoolManager)
    http_mock.request.side_effect = [__fake_response(301, headers={'location': '/avatars/icon.png'}),
                                     __fake_response(200, _expected_body)]
    fetcher = ImageFetcher(Mock(), http_mock)

    # act
    fetcher.fetch(_expected_url)

    # assert
    assert http_mock.request.call_args.args == ('GET', 'https://example.com/avatars/icon.png')


def test_fetch_too_many_redirects():
    # arrange
    http_mock = create_autospec(PoolManager)
    http_mock.request.side_effect = lambda *args, **kwargs: __fake_response(302, headers={'location': '/loop'})
    fetcher = ImageFetcher(Mock(), http_mock)

    # act
    result = fetcher.fetch(_expected_url)

    # assert
    assert result.error.kind == ErrorKind.NETWORK
    assert 'redirects' in result.error.message
    assert http_mock.request.call_count == 11
