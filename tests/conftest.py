"""
测试公共夹具

在不启动服务器的情况下构造 Starlette 请求
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest
from starlette.requests import Request

from iris.forward.incoming import IncomingRequest

HeaderItems = Union[Dict[str, str], Sequence[Tuple[str, str]]]


def build_request(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[HeaderItems] = None,
    body: bytes = b"",
    root_path: str = "",
    scheme: str = "http",
    server: Tuple[str, int] = ("testserver", 80),
    client: Optional[Tuple[str, int]] = ("10.0.0.1", 50000),
) -> Request:
    """根据 ASGI scope 构造 Starlette 请求"""
    if headers is None:
        headers = []
    if isinstance(headers, dict):
        headers = list(headers.items())

    raw_headers: List[Tuple[bytes, bytes]] = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in headers
    ]

    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": scheme,
        "path": root_path + path,
        "root_path": root_path,
        "raw_path": (root_path + path).encode("latin-1"),
        "query_string": query_string.encode("latin-1"),
        "headers": raw_headers,
        "server": server,
        "client": client,
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def build_incoming(body: bytes = b"", **kwargs) -> IncomingRequest:
    """构造已读取请求体的外部请求视图"""
    return IncomingRequest(build_request(body=body, **kwargs), body)


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def make_incoming():
    return build_incoming


@pytest.fixture
def browser_request(make_incoming):
    """一个携带会话、认证以及若干无关请求头的浏览器请求"""
    return make_incoming(
        method="POST",
        path="/app/form",
        query_string="step=2",
        headers=[
            ("Host", "example.org"),
            ("Cookie", "JSESSIONID=abc123"),
            ("Authorization", "Bearer token-1"),
            ("Referer", "https://example.org/app/start"),
            ("Content-Type", "application/x-www-form-urlencoded; charset=ISO-8859-1"),
            ("Content-Length", "7"),
            ("User-Agent", "pytest-browser"),
        ],
        body=b"name=ok",
    )
