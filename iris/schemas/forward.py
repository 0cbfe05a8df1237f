"""
转发规则模型

定义从本地 forwards.yaml 加载的转发规则数据结构
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ForwardRule:
    """
    转发规则

    将匹配 path_pattern 的请求在服务端内部转发到 target_path
    """

    # 规则 ID
    id: int
    # 路径匹配模式（支持 *, **, {id} 通配符）
    path_pattern: str
    # 转发目标路径（可以带查询字符串）
    target_path: str
    # HTTP 方法限制（逗号分隔，如 "GET,POST" 或 "*"）
    methods: str = "*"
    # 转发时使用的方法（为空则沿用原始请求方法）
    forward_method: Optional[str] = None
    # 是否剥离路径前缀，并把剩余路径拼接到 target_path 之后
    strip_prefix: bool = False
    # 要剥离的路径
    strip_path: Optional[str] = None
    # 是否附加原始请求的查询字符串
    preserve_query: bool = True
    # 优先级（数值越大优先级越高）
    priority: int = 0
    # 是否启用
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rule_id: int) -> "ForwardRule":
        """
        从配置字典创建转发规则

        Args:
            data: 配置字典
            rule_id: 规则 ID（配置中未指定 id 时使用）
        """
        forward_method = data.get("forward_method")

        return cls(
            id=data.get("id", rule_id),
            path_pattern=data["path_pattern"],
            target_path=data["target_path"],
            methods=data.get("methods", "*"),
            forward_method=forward_method.upper() if forward_method else None,
            strip_prefix=data.get("strip_prefix", False),
            strip_path=data.get("strip_path"),
            preserve_query=data.get("preserve_query", True),
            priority=data.get("priority", 0),
            enabled=data.get("enabled", True),
        )

    def __hash__(self) -> int:
        return hash(self.id)
