import io
from typing import Mapping

import pytest
import requests

from requester.client import Client, with_default_options
from requester.request import with_host


def make_response(
    *,
    content: bytes = b"",
    status: int = 200,
    reason: str = "OK",
    url: str = "http://example.com",
    headers: Mapping[str, str] | None = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.url = url
    response.raw = io.BytesIO(content)
    response.headers.update(
        headers if headers is not None else {"Content-Type": "application/json"}
    )
    return response


@pytest.fixture
def client():
    return Client(with_default_options(with_host("http://example.com")))
