"""
请求视图接口模块

定义网关内部使用的请求能力接口，外部请求与转发请求都实现该接口，
下游处理逻辑无法区分二者
"""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, TextIO


class ExternalRequest(ABC):
    """
    请求视图基类

    访问器分为两组：
    - 转发视图会覆盖的访问器（路径、方法、请求体、请求头等）
    - 转发视图原样委托给原始请求的访问器（协议、主机、客户端地址等）
    """

    # ========== 请求行 ==========

    @property
    @abstractmethod
    def method(self) -> str:
        """HTTP 方法（大写）"""

    @property
    @abstractmethod
    def servlet_path(self) -> str:
        """应用挂载路径部分"""

    @property
    @abstractmethod
    def path_info(self) -> str:
        """挂载路径之后的路径部分"""

    @property
    @abstractmethod
    def query_string(self) -> Optional[str]:
        """查询字符串，没有 '?' 时为 None"""

    @property
    @abstractmethod
    def parameter_map(self) -> Dict[str, List[str]]:
        """解码后的查询参数"""

    @property
    @abstractmethod
    def path_translated(self) -> Optional[str]:
        """映射到文件系统的路径"""

    @property
    def request_path(self) -> str:
        """
        请求路径

        拼接 servlet_path 与 path_info，避免拼接处出现双斜杠，并保证以 / 开头
        """
        servlet_path = self.servlet_path or ""
        path_info = self.path_info or ""

        if servlet_path.endswith("/") and path_info.startswith("/"):
            request_path = servlet_path + path_info[1:]
        else:
            request_path = servlet_path + path_info

        if not request_path.startswith("/"):
            request_path = "/" + request_path

        return request_path

    # ========== 请求头 ==========

    @property
    @abstractmethod
    def header_map(self) -> Mapping[str, str]:
        """请求头（单值）"""

    @property
    @abstractmethod
    def header_values_map(self) -> Mapping[str, List[str]]:
        """请求头（多值）"""

    # ========== 请求体 ==========

    @property
    @abstractmethod
    def content_length(self) -> int:
        """请求体字节数"""

    @property
    @abstractmethod
    def content_type(self) -> Optional[str]:
        """请求体媒体类型"""

    @property
    @abstractmethod
    def character_encoding(self) -> Optional[str]:
        """请求体字符编码"""

    @property
    @abstractmethod
    def input_stream(self) -> Optional[BinaryIO]:
        """请求体字节流"""

    @property
    @abstractmethod
    def reader(self) -> Optional[TextIO]:
        """请求体文本流"""

    # ========== 连接与上下文 ==========

    @property
    @abstractmethod
    def scheme(self) -> str:
        """协议（http/https）"""

    @property
    @abstractmethod
    def server_name(self) -> str:
        """服务端主机名"""

    @property
    @abstractmethod
    def server_port(self) -> Optional[int]:
        """服务端端口"""

    @property
    @abstractmethod
    def context_path(self) -> str:
        """应用上下文路径"""

    @property
    @abstractmethod
    def remote_addr(self) -> Optional[str]:
        """客户端地址"""

    @property
    @abstractmethod
    def remote_host(self) -> Optional[str]:
        """客户端主机"""

    @property
    @abstractmethod
    def protocol(self) -> str:
        """HTTP 协议版本，如 HTTP/1.1"""

    @property
    @abstractmethod
    def is_secure(self) -> bool:
        """是否为 HTTPS 请求"""

    @property
    @abstractmethod
    def request_uri(self) -> str:
        """原始请求 URI（不含查询字符串）"""

    @property
    @abstractmethod
    def request_url(self) -> str:
        """完整请求 URL（不含查询字符串）"""

    @property
    @abstractmethod
    def attributes(self) -> Dict[str, Any]:
        """请求属性"""

    @property
    @abstractmethod
    def request_id(self) -> str:
        """请求 ID"""
