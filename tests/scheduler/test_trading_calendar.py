"""
交易日历测试
"""

from datetime import datetime, timedelta, timezone

from lof_arbitrage.scheduler import TradingCalendar


class TestTradingCalendar:
    """交易日历测试"""

    def test_weekend_and_holiday(self):
        """测试周末和节假日不是交易日"""
        calendar = TradingCalendar()
        assert not calendar.is_trading_day(datetime(2026, 10, 17))   # 周六
        assert not calendar.is_trading_day(datetime(2026, 10, 1))    # 国庆
        assert calendar.is_trading_day(datetime(2026, 10, 19))

    def test_custom_holidays(self):
        """测试自定义节假日"""
        assert TradingCalendar(holidays=[]).is_trading_day(datetime(2026, 10, 1))
        assert not TradingCalendar(holidays=['2026-10-19']).is_trading_day(datetime(2026, 10, 19))

    def test_market_hours(self):
        """测试交易时段"""
        calendar = TradingCalendar()
        assert calendar.is_market_open(datetime(2026, 10, 19, 10, 0))
        assert not calendar.is_market_open(datetime(2026, 10, 19, 12, 0))
        assert calendar.is_market_open(datetime(2026, 10, 19, 14, 59))
        assert not calendar.is_market_open(datetime(2026, 10, 17, 10, 0))

    def test_aware_time_converted_to_beijing(self):
        """测试带时区的时间按北京时间判断"""
        calendar = TradingCalendar()
        # UTC 02:00 = 北京时间 10:00
        assert calendar.is_market_open(datetime(2026, 10, 19, 2, 0, tzinfo=timezone.utc))
        # UTC 10:00 = 北京时间 18:00
        assert not calendar.is_market_open(datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc))
        # 周日 UTC 22:00 = 周一北京时间 06:00
        assert calendar.is_trading_day(datetime(2026, 10, 18, 22, 0, tzinfo=timezone.utc))

    def test_now_is_beijing_time(self):
        """测试当前时间带北京时区"""
        assert TradingCalendar.now().utcoffset() == timedelta(hours=8)
