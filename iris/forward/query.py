"""
查询字符串解码模块
"""

from typing import Dict, List, Optional
from urllib.parse import parse_qs


def decode_query_string(query_string: Optional[str]) -> Dict[str, List[str]]:
    """
    解码查询字符串

    采用 application/x-www-form-urlencoded 的宽松解码规则：
    '+' 解码为空格，保留空值参数，格式错误的片段直接忽略而不抛出异常。

    Args:
        query_string: 查询字符串（不含 '?'），None 表示没有查询字符串

    Returns:
        参数名到值列表的映射（保持参数出现的顺序）
    """
    if not query_string:
        return {}

    return parse_qs(query_string, keep_blank_values=True, strict_parsing=False)
