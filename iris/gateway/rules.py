"""
转发规则表模块

从本地 forwards.yaml 加载转发规则，按优先级排序后供网关匹配使用
"""

from pathlib import Path
from typing import List, Optional, Union

import yaml

from iris.core.logging import get_logger
from iris.schemas.forward import ForwardRule

logger = get_logger("iris.gateway.rules")


class RuleTable:
    """
    转发规则表

    配置文件格式：

        forwards:
          - path_pattern: /old/**
            target_path: /new
            strip_prefix: true
            strip_path: /old
          - path_pattern: /search
            target_path: /internal/search?source=gateway
            forward_method: GET
    """

    def __init__(
        self,
        forwards_file: Optional[Union[str, Path]] = None,
        enabled: bool = True,
    ):
        """
        初始化转发规则表

        Args:
            forwards_file: 转发规则文件路径，None 表示不从文件加载
            enabled: 是否从文件加载规则
        """
        self.forwards_file = Path(forwards_file) if forwards_file else None
        self.enabled = enabled

        # 从文件加载的规则
        self._file_rules: List[ForwardRule] = []
        # 通过代码注册的规则
        self._extra_rules: List[ForwardRule] = []
        # 合并并排序后的规则
        self._rules: List[ForwardRule] = []
        # 是否已加载
        self.loaded = False

    def load(self) -> None:
        """加载转发规则文件"""
        self._file_rules = self._load_file()
        self._rebuild()
        self.loaded = True

    def reload(self) -> None:
        """重新加载转发规则文件"""
        self.load()

    def add(self, rule: ForwardRule) -> None:
        """注册一条转发规则"""
        self._extra_rules.append(rule)
        self._rebuild()

    def get_rules(self) -> List[ForwardRule]:
        """获取按优先级降序排列的规则"""
        return self._rules.copy()

    @property
    def rule_count(self) -> int:
        """规则数量"""
        return len(self._rules)

    def _rebuild(self) -> None:
        rules = self._file_rules + self._extra_rules
        # 排序是稳定的，同优先级时保持配置顺序
        self._rules = sorted(rules, key=lambda r: r.priority, reverse=True)

    def _load_file(self) -> List[ForwardRule]:
        if not self.enabled:
            logger.debug("转发规则文件已禁用")
            return []

        if self.forwards_file is None:
            return []

        if not self.forwards_file.exists():
            logger.debug(f"转发规则文件不存在: {self.forwards_file}")
            return []

        try:
            with open(self.forwards_file, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"加载转发规则文件失败: {e}", exc_info=True)
            return []

        if not config:
            logger.debug("转发规则文件为空")
            return []

        rules = []
        for i, rule_data in enumerate(config.get("forwards") or []):
            try:
                rules.append(ForwardRule.from_dict(rule_data, rule_id=i + 1))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"解析转发规则失败: {e}", exc_info=True)

        logger.info(
            f"已加载 {len(rules)} 条转发规则",
            extra={"extra_fields": {"forward_rules": len(rules)}},
        )

        return rules
