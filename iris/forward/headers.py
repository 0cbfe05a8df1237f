"""
请求头映射模块

提供按头名称大小写不敏感查找的只读映射
"""

from collections.abc import Mapping
from typing import Dict, Generic, Iterable, Iterator, Optional, Tuple, TypeVar, Union

V = TypeVar("V")


class HeaderMap(Mapping, Generic[V]):
    """
    请求头只读映射

    键在构造和查找时统一转为小写，因此 m["Cookie"] 与 m["cookie"] 等价。
    值可以是单个字符串，也可以是有序的字符串列表。
    """

    __slots__ = ("_items",)

    def __init__(
        self,
        items: Optional[Union[Mapping, Iterable[Tuple[str, V]]]] = None,
    ):
        self._items: Dict[str, V] = {}
        if items is None:
            return
        if isinstance(items, Mapping):
            items = items.items()
        for name, value in items:
            self._items[name.lower()] = value

    def __getitem__(self, name: str) -> V:
        return self._items[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderMap):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == {k.lower(): v for k, v in other.items()}
        return NotImplemented

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"
