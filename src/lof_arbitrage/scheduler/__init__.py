"""
套利监控调度模块

提供定时折溢价检查、交易日判断等功能。
"""

from .arbitrage_monitor import ArbitrageMonitor, CheckResult, Opportunity
from .trading_calendar import TradingCalendar

__all__ = [
    "ArbitrageMonitor",
    "CheckResult",
    "Opportunity",
    "TradingCalendar",
]
