"""
套利监控配置

监控配置是一个可JSON序列化的对象，字段名与类型需与存储中的数据保持一致：
    {"enabled": bool, "interval": int(毫秒), "threshold": float(%), "monitoredCodes": [str]}
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

MONITOR_STORAGE_KEY = 'arbitrage_monitor_config'

# 轮询间隔下限(毫秒)
MIN_INTERVAL_MS = 5000


def _to_threshold(value: Any) -> float:
    """阈值统一为float，数字字符串可接受，其他类型拒绝"""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"无效的提醒阈值: {value!r}")
    return float(value)


@dataclass(frozen=True)
class MonitorConfig:
    """套利监控配置"""
    enabled: bool = False
    interval: int = 30000                    # 轮询间隔(毫秒)
    threshold: float = 2.0                   # 折溢价提醒阈值(%)
    monitored_codes: List[str] = field(default_factory=list)

    @property
    def interval_seconds(self) -> float:
        return self.interval / 1000

    def to_dict(self) -> Dict[str, Any]:
        """转换为存储格式"""
        return {
            'enabled': self.enabled,
            'interval': self.interval,
            'threshold': self.threshold,
            'monitoredCodes': list(self.monitored_codes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MonitorConfig':
        """
        从存储格式构建，缺失字段使用默认值

        Args:
            data: 存储中的配置字典

        Returns:
            配置对象
        """
        defaults = cls()
        return cls(
            enabled=bool(data.get('enabled', defaults.enabled)),
            interval=int(data.get('interval', defaults.interval)),
            threshold=_to_threshold(data.get('threshold', defaults.threshold)),
            monitored_codes=[str(c) for c in data.get('monitoredCodes', [])],
        )

    @classmethod
    def load(cls, store) -> 'MonitorConfig':
        """
        从存储加载配置，失败时返回默认配置

        Args:
            store: 键值存储

        Returns:
            配置对象
        """
        try:
            saved = store.get(MONITOR_STORAGE_KEY)
            if saved:
                return cls.from_dict(saved)
        except Exception as e:
            logger.error(f"加载监控配置失败: {e}")
        return cls()

    def save(self, store) -> bool:
        """
        保存配置到存储，失败只记录日志

        Args:
            store: 键值存储

        Returns:
            是否保存成功
        """
        try:
            store.set(MONITOR_STORAGE_KEY, self.to_dict())
            return True
        except Exception as e:
            logger.error(f"保存监控配置失败: {e}")
            return False

    def with_code(self, code: str) -> 'MonitorConfig':
        """添加监控基金（已存在则不变）"""
        if code in self.monitored_codes:
            return self
        return replace(self, monitored_codes=[*self.monitored_codes, code])

    def without_code(self, code: str) -> 'MonitorConfig':
        """移除监控基金"""
        return replace(self, monitored_codes=[c for c in self.monitored_codes if c != code])

    def validate(self) -> List[str]:
        """
        验证配置

        Returns:
            错误信息列表，空列表表示验证通过
        """
        errors = []

        if self.interval < MIN_INTERVAL_MS:
            errors.append(f"轮询间隔不能小于 {MIN_INTERVAL_MS // 1000} 秒")
        if self.threshold is None or self.threshold < 0:
            errors.append("提醒阈值不能为负数")
        if self.enabled and not self.monitored_codes:
            errors.append("监控列表为空 (monitoredCodes)")

        return errors
