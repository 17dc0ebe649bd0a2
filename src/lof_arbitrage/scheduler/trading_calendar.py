"""
A股交易日历

判断交易日和交易时段，时间均按北京时间计算。
"""

import logging
from datetime import datetime, time
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

MARKET_TZ = ZoneInfo('Asia/Shanghai')


class TradingCalendar:
    """
    A股交易日历

    特性:
    - 判断是否为交易日（排除周末和节假日）
    - 判断是否处于连续竞价时段
    """

    MARKET_HOURS = {
        'morning_open': time(9, 30),
        'morning_close': time(11, 30),
        'afternoon_open': time(13, 0),
        'afternoon_close': time(15, 0),
    }

    # 2026年休市的工作日（周末本身不交易无需列入）
    HOLIDAYS_2026 = [
        '2026-01-01', '2026-01-02',
        '2026-02-16', '2026-02-17', '2026-02-18', '2026-02-19', '2026-02-20', '2026-02-23',
        '2026-04-06',
        '2026-05-01', '2026-05-04', '2026-05-05',
        '2026-06-19',
        '2026-09-25',
        '2026-10-01', '2026-10-02', '2026-10-05', '2026-10-06', '2026-10-07',
    ]

    def __init__(self, holidays: Optional[Iterable[str]] = None):
        """
        初始化交易日历

        Args:
            holidays: 休市日期列表 YYYY-MM-DD，默认使用内置节假日
        """
        self.holidays = set(holidays if holidays is not None else self.HOLIDAYS_2026)
        logger.debug(f"交易日历已加载，包含{len(self.holidays)}个节假日")

    @staticmethod
    def now() -> datetime:
        """当前北京时间"""
        return datetime.now(MARKET_TZ)

    def _localize(self, dt: Optional[datetime]) -> datetime:
        if dt is None:
            return self.now()
        # 带时区的时间换算为北京时间，不带时区的按北京时间处理
        return dt.astimezone(MARKET_TZ) if dt.tzinfo is not None else dt

    def is_trading_day(self, date: Optional[datetime] = None) -> bool:
        """
        判断是否为交易日

        Args:
            date: 要检查的日期，默认为今天

        Returns:
            是否为交易日
        """
        date = self._localize(date)

        if date.weekday() >= 5:  # 5=周六, 6=周日
            return False

        return date.strftime('%Y-%m-%d') not in self.holidays

    def is_market_open(self, dt: Optional[datetime] = None) -> bool:
        """
        判断是否处于交易时段

        Args:
            dt: 要检查的时间，默认为现在

        Returns:
            市场是否开盘
        """
        dt = self._localize(dt)

        if not self.is_trading_day(dt):
            return False

        current = dt.time()
        morning = self.MARKET_HOURS['morning_open'] <= current <= self.MARKET_HOURS['morning_close']
        afternoon = self.MARKET_HOURS['afternoon_open'] <= current <= self.MARKET_HOURS['afternoon_close']

        return morning or afternoon
