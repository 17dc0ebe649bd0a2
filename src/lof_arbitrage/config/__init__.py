"""
配置模块

提供应用配置、手续费配置、监控配置的加载与管理。
"""

from .app_config import AppConfig, setup_logging
from .fee_config import FEE_CONFIG, FeeSchedule, get_fee_schedule
from .monitor_config import MonitorConfig

__all__ = [
    "AppConfig",
    "setup_logging",
    "FEE_CONFIG",
    "FeeSchedule",
    "get_fee_schedule",
    "MonitorConfig",
]
