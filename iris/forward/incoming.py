"""
外部请求适配模块

将 FastAPI / Starlette 请求适配为 ExternalRequest 接口
"""

import io
from functools import cached_property
from typing import Any, BinaryIO, Dict, List, Optional, TextIO

from fastapi import Request

from iris.forward.base import ExternalRequest
from iris.forward.headers import HeaderMap
from iris.forward.query import decode_query_string

# 请求体未声明编码时使用的默认编码
DEFAULT_CHARSET = "utf-8"


def parse_charset(content_type: Optional[str]) -> Optional[str]:
    """从 Content-Type 中提取 charset 参数"""
    if not content_type:
        return None

    for param in content_type.split(";")[1:]:
        name, _, value = param.strip().partition("=")
        if name.strip().lower() == "charset" and value:
            return value.strip().strip('"')

    return None


class IncomingRequest(ExternalRequest):
    """
    外部请求视图

    Starlette 的请求体只能异步读取，因此需要通过 from_request 构造，
    构造时一次性读取请求体
    """

    def __init__(self, request: Request, body: bytes = b""):
        self._request = request
        self._body = body

    @classmethod
    async def from_request(cls, request: Request) -> "IncomingRequest":
        """读取请求体并创建外部请求视图"""
        body = await request.body()
        return cls(request, body)

    @property
    def request(self) -> Request:
        """底层 Starlette 请求"""
        return self._request

    @property
    def body(self) -> bytes:
        """请求体"""
        return self._body

    # ========== 请求行 ==========

    @property
    def method(self) -> str:
        return self._request.method.upper()

    @property
    def servlet_path(self) -> str:
        return self._request.scope.get("root_path", "")

    @property
    def path_info(self) -> str:
        path = self._request.scope.get("path", "")
        root_path = self.servlet_path
        if root_path and path.startswith(root_path):
            path = path[len(root_path):]
        return path

    @property
    def query_string(self) -> Optional[str]:
        raw = self._request.scope.get("query_string", b"")
        if not raw:
            return None
        return raw.decode("latin-1")

    @cached_property
    def parameter_map(self) -> Dict[str, List[str]]:
        return decode_query_string(self.query_string)

    @property
    def path_translated(self) -> Optional[str]:
        return None

    # ========== 请求头 ==========

    @cached_property
    def header_map(self) -> HeaderMap[str]:
        # 同名请求头取第一个值
        values: Dict[str, str] = {}
        for name, value in self._request.headers.items():
            values.setdefault(name.lower(), value)
        return HeaderMap(values)

    @cached_property
    def header_values_map(self) -> HeaderMap[List[str]]:
        headers = self._request.headers
        return HeaderMap(
            (name, headers.getlist(name)) for name in headers.keys()
        )

    # ========== 请求体 ==========

    @property
    def content_length(self) -> int:
        return len(self._body)

    @property
    def content_type(self) -> Optional[str]:
        return self._request.headers.get("content-type")

    @property
    def character_encoding(self) -> Optional[str]:
        return parse_charset(self.content_type)

    @cached_property
    def input_stream(self) -> Optional[BinaryIO]:
        return io.BytesIO(self._body)

    @cached_property
    def reader(self) -> Optional[TextIO]:
        if not self._body:
            return None
        encoding = self.character_encoding or DEFAULT_CHARSET
        return io.StringIO(self._body.decode(encoding, errors="replace"))

    # ========== 连接与上下文 ==========

    @property
    def scheme(self) -> str:
        return self._request.url.scheme

    @property
    def server_name(self) -> str:
        hostname = self._request.url.hostname
        if hostname:
            return hostname
        server = self._request.scope.get("server")
        return server[0] if server else ""

    @property
    def server_port(self) -> Optional[int]:
        port = self._request.url.port
        if port is not None:
            return port
        server = self._request.scope.get("server")
        return server[1] if server else None

    @property
    def context_path(self) -> str:
        return self._request.scope.get("root_path", "")

    @property
    def remote_addr(self) -> Optional[str]:
        if self._request.client:
            return self._request.client.host
        return None

    @property
    def remote_host(self) -> Optional[str]:
        return self.remote_addr

    @property
    def protocol(self) -> str:
        return f"HTTP/{self._request.scope.get('http_version', '1.1')}"

    @property
    def is_secure(self) -> bool:
        return self.scheme in ("https", "wss")

    @property
    def request_uri(self) -> str:
        return self._request.url.path

    @property
    def request_url(self) -> str:
        return str(self._request.url.replace(query=""))

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._request.scope.get("state", {}))

    @property
    def request_id(self) -> str:
        return getattr(self._request.state, "request_id", "")
