"""
套利监控

使用APScheduler按固定间隔检查监控列表中的基金折溢价，
超过阈值时发布套利提醒。
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Deque, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..analysis.arbitrage import is_arbitrage_profitable
from ..config.monitor_config import MonitorConfig
from ..data.catalog import find_fund
from ..models.fund import FundRef, PremiumDiscount, ProfitabilityVerdict
from ..notification.events import Notification, NotificationBus
from .trading_calendar import TradingCalendar

logger = logging.getLogger(__name__)

JOB_ID = 'arbitrage_check'


@dataclass(frozen=True)
class Opportunity:
    """套利机会：超过阈值的折溢价及其收益判断"""
    fund: FundRef
    premium: PremiumDiscount
    verdict: ProfitabilityVerdict

    @property
    def code(self) -> str:
        return self.fund.code

    @property
    def name(self) -> str:
        return self.fund.name

    @property
    def premium_discount_percent(self) -> float:
        return self.premium.premium_discount_percent

    @property
    def direction(self) -> str:
        return self.premium.direction_label


@dataclass
class CheckResult:
    """一次检查的结果"""
    timestamp: datetime
    checked_count: int
    opportunities: List[Opportunity] = field(default_factory=list)
    failed_codes: List[str] = field(default_factory=list)
    skipped: bool = False


@dataclass(frozen=True)
class MonitorLog:
    """监控日志"""
    timestamp: str
    message: str
    level: str = 'info'


class ArbitrageMonitor:
    """
    套利监控器

    功能:
    - 逐只顺序检查监控列表，单只基金失败不影响其他基金
    - |折溢价率| >= 阈值时发布 type='arbitrage' 的通知
    - 配置变化时保存到存储并重新调度
    """

    def __init__(
        self,
        config: MonitorConfig,
        data_service,
        bus: NotificationBus,
        store=None,
        calendar: Optional[TradingCalendar] = None,
        market_hours_only: bool = False,
        notification_duration: int = 10000,
        max_log_entries: int = 20,
        fund_lookup: Callable[[str], Optional[FundRef]] = find_fund,
    ):
        """
        初始化监控器

        Args:
            config: 监控配置
            data_service: 数据服务，需提供 fetch_quote / fetch_reference_value
            bus: 通知总线
            store: 键值存储，用于保存配置变更；None表示不持久化
            calendar: 交易日历
            market_hours_only: 是否只在交易时段检查
            notification_duration: 提醒显示时长(毫秒)
            max_log_entries: 保留的日志条数
            fund_lookup: 基金代码 -> FundRef
        """
        self.config = config
        self.data_service = data_service
        self.bus = bus
        self.store = store
        self.calendar = calendar or TradingCalendar()
        self.market_hours_only = market_hours_only
        self.notification_duration = notification_duration
        self.fund_lookup = fund_lookup

        self.logs: Deque[MonitorLog] = deque(maxlen=max_log_entries)
        self.last_result: Optional[CheckResult] = None
        self._check_lock = threading.Lock()

        self.scheduler = BackgroundScheduler(
            job_defaults={'coalesce': True, 'max_instances': 1},
            timezone='Asia/Shanghai',
        )

        self._log('监控组件已初始化')

    def _log(self, message: str, level: str = 'info'):
        self.logs.append(MonitorLog(datetime.now().strftime('%H:%M:%S'), message, level))
        log_level = {
            'success': logging.INFO,
            'warning': logging.WARNING,
            'error': logging.ERROR,
        }.get(level, logging.INFO)
        logger.log(log_level, message)

    # ------------------------------------------------------------------
    # 检查

    def _check_one(self, fund: FundRef) -> Optional[Opportunity]:
        quote = self.data_service.fetch_quote(fund.code, fund.type)
        if quote is None:
            raise LookupError('行情获取失败')

        reference = self.data_service.fetch_reference_value(fund)
        premium = PremiumDiscount.compute(fund.code, quote.price, reference)
        if premium is None:
            self._log(f"{fund.name}: 现价={quote.price:.3f}, 参考净值不可用")
            return None

        percent = premium.premium_discount_percent
        self._log(
            f"{fund.name}: 现价={quote.price:.3f}, "
            f"IOPV={reference:.3f}, 折溢价率={percent:.2f}%"
        )

        if abs(percent) < self.config.threshold:
            return None

        return Opportunity(
            fund=fund,
            premium=premium,
            verdict=is_arbitrage_profitable(percent, fund.type),
        )

    def check_opportunities(self) -> CheckResult:
        """
        检查一次监控列表

        Returns:
            检查结果
        """
        with self._check_lock:
            codes = list(self.config.monitored_codes)

            if not codes:
                self._log('没有监控的基金，跳过检查', 'warning')
                result = CheckResult(timestamp=datetime.now(), checked_count=0, skipped=True)
                self.last_result = result
                return result

            if self.market_hours_only and not self.calendar.is_market_open(self.calendar.now()):
                self._log('当前非交易时段，跳过检查')
                result = CheckResult(timestamp=datetime.now(), checked_count=0, skipped=True)
                self.last_result = result
                return result

            self._log(f"开始检查 {len(codes)} 只基金，阈值 {self.config.threshold}%")
            result = CheckResult(timestamp=datetime.now(), checked_count=len(codes))

            for code in codes:
                fund = self.fund_lookup(code)
                if fund is None:
                    self._log(f"基金 {code} 未找到", 'warning')
                    result.failed_codes.append(code)
                    continue

                try:
                    opportunity = self._check_one(fund)
                except Exception as e:
                    self._log(f"{fund.name}({code}) 检查失败: {e}", 'error')
                    result.failed_codes.append(code)
                    continue

                if opportunity is not None:
                    result.opportunities.append(opportunity)
                    self._log(
                        f"发现套利机会！{fund.name} {opportunity.direction}"
                        f"{opportunity.premium_discount_percent:.2f}%",
                        'success'
                    )

            self.last_result = result

        self._notify(result.opportunities)
        return result

    def _notify(self, opportunities: List[Opportunity]):
        if not opportunities:
            self._log('本次检查未发现套利机会')
            return

        for opp in opportunities:
            self.bus.publish(Notification(
                title=f"{opp.name} 套利机会",
                body=f"{opp.direction}{opp.premium_discount_percent:.2f}%",
                type='arbitrage',
                duration=self.notification_duration,
            ))
        self._log(f"发现 {len(opportunities)} 个套利机会，已发送通知", 'success')

    # ------------------------------------------------------------------
    # 调度

    @property
    def running(self) -> bool:
        return self.scheduler.running and self.scheduler.get_job(JOB_ID) is not None

    def start(self) -> bool:
        """
        启动监控：立即检查一次，然后按间隔轮询

        Returns:
            是否已启动
        """
        if not self.config.enabled:
            self._log('监控未开启，无法启动', 'warning')
            return False
        if not self.config.monitored_codes:
            self._log('没有监控的基金，无法启动', 'warning')
            return False

        self.check_opportunities()
        self._schedule()
        if not self.scheduler.running:
            self.scheduler.start()

        self._log(f"监控已启动，间隔 {self.config.interval_seconds:g} 秒")
        return True

    def _schedule(self):
        self.scheduler.add_job(
            func=self.check_opportunities,
            trigger=IntervalTrigger(seconds=self.config.interval_seconds),
            id=JOB_ID,
            name='折溢价检查',
            replace_existing=True,
        )

    def _unschedule(self):
        if self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.remove_job(JOB_ID)

    def stop(self):
        """停止监控"""
        self._unschedule()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self._log('监控已停止')

    def update_config(self, config: MonitorConfig):
        """
        更新配置：保存到存储，并按新配置重新调度或停止

        Args:
            config: 新配置
        """
        self.config = config
        if self.store is not None:
            config.save(self.store)

        self._log(f"配置已更新: 阈值={config.threshold}%, 间隔={config.interval_seconds:g}秒")

        if not self.scheduler.running:
            return

        if config.enabled and config.monitored_codes:
            self._schedule()
        else:
            self._unschedule()
            self._log('监控已关闭')

    def set_enabled(self, enabled: bool):
        """开启/关闭监控"""
        self.update_config(replace(self.config, enabled=enabled))

    def add_code(self, code: str):
        """添加监控基金"""
        self.update_config(self.config.with_code(code))

    def remove_code(self, code: str):
        """移除监控基金"""
        self.update_config(self.config.without_code(code))

    def get_status(self) -> dict:
        """
        获取监控状态

        Returns:
            状态字典
        """
        job = self.scheduler.get_job(JOB_ID) if self.scheduler.running else None
        return {
            'running': job is not None,
            'next_run': job.next_run_time if job else None,
            'config': self.config.to_dict(),
            'last_check': self.last_result.timestamp if self.last_result else None,
            'opportunities': len(self.last_result.opportunities) if self.last_result else 0,
        }
