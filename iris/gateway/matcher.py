"""
转发规则匹配器模块

根据请求路径匹配转发规则，支持通配符模式，并计算转发目标路径
"""

import fnmatch
import re
from typing import List, Optional

from iris.schemas.forward import ForwardRule


class RuleMatcher:
    """
    转发规则匹配器

    支持的路径模式：
    - /app/page - 精确匹配
    - /app/pages/* - 匹配一级子路径
    - /app/** - 匹配所有子路径
    - /app/users/{id} - 路径参数
    """

    @staticmethod
    def match_path(pattern: str, path: str) -> bool:
        """
        匹配路径

        Args:
            pattern: 路径模式
            path: 请求路径

        Returns:
            是否匹配
        """
        # 处理 ** 通配符（匹配任意深度的子路径）
        if "**" in pattern:
            # 先转义，再用占位符保护 **，避免被 * 的替换影响
            regex_pattern = re.escape(pattern.replace("**", "\x00"))
            regex_pattern = regex_pattern.replace(r"\*", "[^/]*")
            regex_pattern = regex_pattern.replace("\x00", ".*")
            return re.fullmatch(regex_pattern, path) is not None

        # 处理 * 通配符（匹配单级路径）
        if "*" in pattern:
            return fnmatch.fnmatchcase(path, pattern) and path.count("/") == pattern.count("/")

        # 处理路径参数 {id}
        if "{" in pattern:
            regex_pattern = re.sub(r"\\\{[^}]+\\\}", "[^/]+", re.escape(pattern))
            return re.fullmatch(regex_pattern, path) is not None

        # 精确匹配
        return pattern == path

    @staticmethod
    def match_method(allowed_methods: str, method: str) -> bool:
        """
        匹配 HTTP 方法

        Args:
            allowed_methods: 允许的方法（逗号分隔或 *）
            method: 请求方法

        Returns:
            是否匹配
        """
        if allowed_methods == "*":
            return True

        methods = [m.strip().upper() for m in allowed_methods.split(",")]
        return method.upper() in methods

    def match(
        self,
        rules: List[ForwardRule],
        method: str,
        path: str,
    ) -> Optional[ForwardRule]:
        """
        从规则列表中查找匹配的转发规则

        Args:
            rules: 转发规则列表（应按优先级降序排列）
            method: HTTP 方法
            path: 请求路径

        Returns:
            匹配的规则，如果没有匹配则返回 None
        """
        for rule in rules:
            if not rule.enabled:
                continue

            if not self.match_path(rule.path_pattern, path):
                continue

            if rule.methods and not self.match_method(rule.methods, method):
                continue

            return rule

        return None


def build_target_path(rule: ForwardRule, request_path: str) -> str:
    """
    构建转发目标路径（不含查询字符串）

    启用 strip_prefix 时，剥离前缀后剩余的路径拼接到目标路径之后

    Args:
        rule: 匹配的规则
        request_path: 原始请求路径

    Returns:
        转发目标路径
    """
    target_path = rule.target_path.partition("?")[0]

    if rule.strip_prefix and rule.strip_path:
        prefix = rule.strip_path.rstrip("/")
        # 前缀只在路径段边界上剥离，/old 不匹配 /oldies
        if request_path == prefix or request_path.startswith(prefix + "/"):
            remainder = request_path[len(prefix):]
            if remainder and remainder != "/":
                target_path = target_path.rstrip("/") + "/" + remainder.lstrip("/")

    # 确保路径以 / 开头
    if not target_path.startswith("/"):
        target_path = "/" + target_path

    return target_path


def build_target_path_query(
    rule: ForwardRule,
    request_path: str,
    query_string: Optional[str] = None,
) -> str:
    """
    构建转发目标的路径和查询字符串（"path?query" 或 "path"）

    规则自带的查询参数在前，原始请求的查询参数（preserve_query 时）在后

    Args:
        rule: 匹配的规则
        request_path: 原始请求路径
        query_string: 原始请求查询字符串

    Returns:
        转发目标的路径和查询字符串
    """
    path = build_target_path(rule, request_path)

    queries = []
    _, mark, rule_query = rule.target_path.partition("?")
    if mark and rule_query:
        queries.append(rule_query)
    if rule.preserve_query and query_string:
        queries.append(query_string)

    if queries:
        return f"{path}?{'&'.join(queries)}"

    return path


# 全局规则匹配器实例
rule_matcher = RuleMatcher()
