"""
转发请求视图模块

在原始请求之上构造一个只读视图，用于模拟服务端内部重定向（forward）：
替换路径、查询字符串、方法、媒体类型和请求体，而无需经过网络
"""

import io
from functools import cached_property
from typing import Any, BinaryIO, Dict, List, Optional, TextIO

from iris.forward.base import ExternalRequest
from iris.forward.headers import HeaderMap
from iris.forward.query import decode_query_string

# 允许跨越转发边界的请求头
#
# 其他请求头（如 Referer、Content-Length）对转发后的请求没有意义，不会传递：
# - cookie: 携带会话标识，目标页面据此识别当前用户
# - authorization: 目标页面调用其他服务时需要继续携带，否则可能返回 401
FORWARDED_HEADERS = ("cookie", "authorization")


class ForwardedRequest(ExternalRequest):
    """
    转发请求视图

    构造后不可变，派生字段（路径、查询字符串、查询参数）在首次访问时计算并缓存。
    视图只持有原始请求的引用，不拥有它；未覆盖的访问器逐个委托给原始请求。

    转发视图不支持文本解码：character_encoding 与 reader 始终返回 None，
    调用方应读取 input_stream 获取原始字节。

    视图按单一持有者顺序使用设计，缓存字段不做并发保护。
    """

    def __init__(
        self,
        original: ExternalRequest,
        path_query: str,
        method: str,
        media_type: Optional[str] = None,
        body: Optional[bytes] = None,
    ):
        """
        Args:
            original: 原始请求
            path_query: 新的路径和查询字符串（"path?query" 或 "path"）
            method: HTTP 方法，大小写不敏感
            media_type: 请求体媒体类型
            body: 请求体
        """
        self._original = original
        self._path_query = path_query
        self._method = method
        self._media_type = media_type
        self._body = bytes(body) if body is not None else None

        # 请求头在构造时立即复制，捕获转发时刻原始请求的状态
        self._header_map = self._allowed_headers(original.header_map)
        self._header_values_map = self._allowed_headers(original.header_values_map)

    @classmethod
    def with_body(
        cls,
        original: ExternalRequest,
        path_query: str,
        method: str,
        media_type: Optional[str],
        body: Optional[bytes],
    ) -> "ForwardedRequest":
        """模拟 POST 或 PUT"""
        return cls(original, path_query, method, media_type, body)

    @classmethod
    def bodyless(
        cls,
        original: ExternalRequest,
        path_query: str,
        method: str,
    ) -> "ForwardedRequest":
        """模拟 GET"""
        return cls(original, path_query, method)

    @staticmethod
    def _allowed_headers(headers) -> HeaderMap:
        allowed = []
        for name in FORWARDED_HEADERS:
            if name not in headers:
                continue
            value = headers[name]
            # 多值列表同样复制，避免与原始请求共享
            if isinstance(value, (list, tuple)):
                value = list(value)
            allowed.append((name, value))
        return HeaderMap(allowed)

    @property
    def original(self) -> ExternalRequest:
        """原始请求"""
        return self._original

    @property
    def path_query(self) -> str:
        """路径和查询字符串"""
        return self._path_query

    # ========== 覆盖的访问器 ==========

    @property
    def content_length(self) -> int:
        return 0 if self._body is None else len(self._body)

    @property
    def content_type(self) -> Optional[str]:
        return self._media_type

    @cached_property
    def input_stream(self) -> Optional[BinaryIO]:
        if self._body is None:
            return None
        return io.BytesIO(self._body)

    @property
    def method(self) -> str:
        return self._method.upper()

    @cached_property
    def parameter_map(self) -> Dict[str, List[str]]:
        return decode_query_string(self.query_string)

    @cached_property
    def path_info(self) -> str:
        path, _, _ = self._path_query.partition("?")
        return path

    @cached_property
    def query_string(self) -> Optional[str]:
        _, mark, query = self._path_query.partition("?")
        return query if mark else None

    @property
    def servlet_path(self) -> str:
        # 所有路由信息都在 path_info 中
        return ""

    @property
    def character_encoding(self) -> Optional[str]:
        return None

    @cached_property
    def request_path(self) -> str:
        return super().request_path

    @property
    def header_map(self) -> HeaderMap[str]:
        return self._header_map

    @property
    def header_values_map(self) -> HeaderMap[List[str]]:
        return self._header_values_map

    @property
    def path_translated(self) -> Optional[str]:
        return None

    @property
    def reader(self) -> Optional[TextIO]:
        return None

    # ========== 委托给原始请求的访问器 ==========

    @property
    def scheme(self) -> str:
        return self._original.scheme

    @property
    def server_name(self) -> str:
        return self._original.server_name

    @property
    def server_port(self) -> Optional[int]:
        return self._original.server_port

    @property
    def context_path(self) -> str:
        return self._original.context_path

    @property
    def remote_addr(self) -> Optional[str]:
        return self._original.remote_addr

    @property
    def remote_host(self) -> Optional[str]:
        return self._original.remote_host

    @property
    def protocol(self) -> str:
        return self._original.protocol

    @property
    def is_secure(self) -> bool:
        return self._original.is_secure

    @property
    def request_uri(self) -> str:
        return self._original.request_uri

    @property
    def request_url(self) -> str:
        return self._original.request_url

    @property
    def attributes(self) -> Dict[str, Any]:
        return self._original.attributes

    @property
    def request_id(self) -> str:
        return self._original.request_id

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(method={self.method!r}, "
            f"path_query={self._path_query!r}, content_length={self.content_length})"
        )
