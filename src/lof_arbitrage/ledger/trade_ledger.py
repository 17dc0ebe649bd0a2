"""
交易账本

管理持仓、已确认交易和待确认队列：
- 提交加减仓时查询确认净值，已公布则直接确认并更新持仓，未公布则加入待确认队列
- 待确认交易在净值公布后按可确认的先后顺序确认
- 撤销待确认交易不影响持仓（从未计入持仓）
- 删除已确认交易不会回滚持仓
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from ..models.fund import ReferenceValue
from ..models.trade import FeeMode, Holding, PendingTrade, Trade, TradeType, new_trade_id
from ..utils.helpers import parse_date, validate_fund_code
from .calculations import (
    available_share,
    calc_buy_share,
    calc_sell,
    settlement_query_date,
)

logger = logging.getLogger(__name__)

HOLDINGS_KEY = 'holdings'
TRANSACTIONS_KEY = 'transactions'
PENDING_KEY = 'pendingTrades'

# 份额比较容差
SHARE_EPSILON = 1e-6

NetValueLookup = Callable[[str, str], Optional[ReferenceValue]]


class LedgerError(Exception):
    """账本操作错误"""


class TradeValidationError(LedgerError, ValueError):
    """交易参数无效"""


class InsufficientShareError(TradeValidationError):
    """可卖份额不足"""


class NetValueUnavailable(LedgerError):
    """该日期净值尚未公布"""


@dataclass(frozen=True)
class SubmitResult:
    """提交结果"""
    status: str                          # 'finalized' 或 'pending'
    trade: Optional[Trade] = None
    pending: Optional[PendingTrade] = None

    @property
    def is_finalized(self) -> bool:
        return self.status == 'finalized'


class TradeLedger:
    """
    交易账本

    持仓份额只在确认交易时修改，所有写操作在同一把锁内顺序执行。
    数据通过键值存储持久化: holdings / transactions / pendingTrades。
    """

    def __init__(self, store, lookup: Optional[NetValueLookup] = None):
        """
        初始化账本

        Args:
            store: 键值存储
            lookup: 确认净值查询函数 (基金代码, 日期) -> ReferenceValue | None
        """
        self.store = store
        self.lookup = lookup
        self._lock = threading.RLock()

        self._holdings: Dict[str, Holding] = {}
        self._history: List[Trade] = []
        self._pending: List[PendingTrade] = []
        self._load()

    # ------------------------------------------------------------------
    # 持久化

    def _load(self):
        for item in self.store.get(HOLDINGS_KEY, []) or []:
            holding = Holding.from_dict(item)
            self._holdings[holding.fund_code] = holding
        self._history = [Trade.from_dict(item) for item in self.store.get(TRANSACTIONS_KEY, []) or []]
        self._pending = [PendingTrade.from_dict(item) for item in self.store.get(PENDING_KEY, []) or []]

        logger.debug(
            f"账本已加载: 持仓{len(self._holdings)}只, "
            f"历史{len(self._history)}笔, 待确认{len(self._pending)}笔"
        )

    def _save(self):
        self.store.set(HOLDINGS_KEY, [h.to_dict() for h in self._holdings.values()])
        self.store.set(TRANSACTIONS_KEY, [t.to_dict() for t in self._history])
        self.store.set(PENDING_KEY, [p.to_dict() for p in self._pending])

    # ------------------------------------------------------------------
    # 查询

    def get_holding(self, fund_code: str) -> Optional[Holding]:
        with self._lock:
            holding = self._holdings.get(fund_code)
            return Holding(holding.fund_code, holding.share) if holding else None

    def holdings(self) -> List[Holding]:
        with self._lock:
            return [Holding(h.fund_code, h.share) for h in self._holdings.values()]

    def history(self, fund_code: Optional[str] = None) -> List[Trade]:
        """已确认交易，按时间倒序"""
        with self._lock:
            trades = [t for t in self._history if fund_code is None or t.fund_code == fund_code]
        return sorted(trades, key=lambda t: (t.date, t.timestamp), reverse=True)

    def pending(self, fund_code: Optional[str] = None) -> List[PendingTrade]:
        """待确认交易，按提交顺序"""
        with self._lock:
            return [p for p in self._pending if fund_code is None or p.fund_code == fund_code]

    def available_share(self, fund_code: str) -> float:
        """可卖份额（扣除待确认卖出占用）"""
        with self._lock:
            return available_share(self._holdings.get(fund_code), self._pending)

    # ------------------------------------------------------------------
    # 提交

    def _resolve(self, fund_code: str, date: str, is_after_3pm: bool) -> Optional[ReferenceValue]:
        if self.lookup is None:
            return None

        query_date = settlement_query_date(date, is_after_3pm)
        try:
            reference = self.lookup(fund_code, query_date)
        except Exception as e:
            logger.warning(f"查询确认净值失败 {fund_code} {query_date}: {e}，按待确认处理")
            return None

        if reference is None or not reference.is_valid:
            return None
        return reference

    @staticmethod
    def _validate_common(fund_code: str, date: str):
        if not fund_code or not validate_fund_code(fund_code):
            raise TradeValidationError(f"无效的基金代码: {fund_code}")
        if not date or parse_date(date) is None:
            raise TradeValidationError(f"无效的交易日期: {date}")

    def submit_buy(
        self,
        fund_code: str,
        amount: float,
        date: str,
        is_after_3pm: bool = False,
        fee_rate: float = 0.0,
        reference: Optional[ReferenceValue] = None
    ) -> SubmitResult:
        """
        提交加仓

        Args:
            fund_code: 基金代码
            amount: 买入金额（含申购费）
            date: 交易日期 YYYY-MM-DD
            is_after_3pm: 是否15:00后提交
            fee_rate: 申购费率(%)
            reference: 已查询到的确认净值；不传则由账本查询

        Returns:
            提交结果

        Raises:
            TradeValidationError: 参数无效
        """
        self._validate_common(fund_code, date)
        if amount is None or amount <= 0:
            raise TradeValidationError("买入金额必须大于0")
        if fee_rate is None or fee_rate < 0:
            raise TradeValidationError("买入费率不能为负数")

        pending = PendingTrade(
            fund_code=fund_code,
            type=TradeType.BUY,
            date=date,
            is_after_3pm=is_after_3pm,
            amount=float(amount),
            fee_rate=float(fee_rate),
        )
        return self._submit(pending, reference)

    def submit_sell(
        self,
        fund_code: str,
        share: float,
        date: str,
        is_after_3pm: bool = False,
        fee_mode: Union[FeeMode, str] = FeeMode.RATE,
        fee_value: float = 0.0,
        reference: Optional[ReferenceValue] = None
    ) -> SubmitResult:
        """
        提交减仓

        Args:
            fund_code: 基金代码
            share: 卖出份额
            date: 交易日期 YYYY-MM-DD
            is_after_3pm: 是否15:00后提交
            fee_mode: 手续费方式 rate/amount
            fee_value: 费率(%)或固定金额
            reference: 已查询到的确认净值；不传则由账本查询

        Returns:
            提交结果

        Raises:
            TradeValidationError: 参数无效
            InsufficientShareError: 卖出份额超过可卖份额
        """
        self._validate_common(fund_code, date)
        if share is None or share <= 0:
            raise TradeValidationError("卖出份额必须大于0")
        if fee_value is None or fee_value < 0:
            raise TradeValidationError("手续费不能为负数")
        try:
            mode = FeeMode(fee_mode)
        except ValueError:
            raise TradeValidationError(f"无效的手续费方式: {fee_mode}")

        pending = PendingTrade(
            fund_code=fund_code,
            type=TradeType.SELL,
            date=date,
            is_after_3pm=is_after_3pm,
            share=float(share),
            fee_mode=mode,
            fee_value=float(fee_value),
        )
        return self._submit(pending, reference)

    def _submit(self, pending: PendingTrade, reference: Optional[ReferenceValue]) -> SubmitResult:
        if reference is None:
            reference = self._resolve(pending.fund_code, pending.date, pending.is_after_3pm)

        with self._lock:
            if pending.type is TradeType.SELL:
                available = available_share(self._holdings.get(pending.fund_code), self._pending)
                if pending.share > available + SHARE_EPSILON:
                    raise InsufficientShareError(
                        f"可卖份额不足: 申请{pending.share:.2f}份，可卖{available:.2f}份"
                    )

            if reference is not None:
                trade = self._finalize(pending, reference)
                self._save()
                logger.info(
                    f"{pending.type.label}已确认: {trade.fund_code} {trade.share:.2f}份 "
                    f"净值{trade.price:.4f} ({trade.date})"
                )
                return SubmitResult(status='finalized', trade=trade)

            self._pending.append(pending)
            self._save()
            logger.info(f"{pending.type.label}已加入待确认队列: {pending.fund_code} {pending.date}")
            return SubmitResult(status='pending', pending=pending)

    def _finalize(self, pending: PendingTrade, reference: ReferenceValue) -> Trade:
        """按确认净值生成交易记录并更新持仓，调用方持有锁"""
        price = reference.value
        holding = self._holdings.get(pending.fund_code)

        if pending.type is TradeType.BUY:
            share = calc_buy_share(pending.amount, pending.fee_rate, price)
            amount = pending.amount
            if holding is None:
                holding = Holding(fund_code=pending.fund_code, share=0.0)
                self._holdings[pending.fund_code] = holding
            holding.share += share
        else:
            share = pending.share
            current = holding.share if holding else 0.0
            if share > current + SHARE_EPSILON:
                raise InsufficientShareError(
                    f"持有份额不足: 卖出{share:.2f}份，持有{current:.2f}份"
                )
            amount = calc_sell(share, price, pending.fee_mode, pending.fee_value).estimated_return
            holding.share = max(0.0, holding.share - share)

        trade = Trade(
            id=pending.id,
            fund_code=pending.fund_code,
            type=pending.type,
            date=reference.date,
            amount=amount,
            share=share,
            price=price,
            timestamp=int(time.time() * 1000),
        )
        self._history.append(trade)
        return trade

    # ------------------------------------------------------------------
    # 待确认队列

    def process_pending(self) -> List[Trade]:
        """
        尝试确认所有待确认交易

        净值查询在锁外进行；已可确认的交易按确认净值日期先后依次确认，
        持有份额不足的卖出保留在队列中。

        Returns:
            本次确认的交易
        """
        snapshot = self.pending()
        if not snapshot:
            return []

        resolved = []
        for item in snapshot:
            reference = self._resolve(item.fund_code, item.date, item.is_after_3pm)
            if reference is not None:
                resolved.append((item, reference))

        resolved.sort(key=lambda pair: (pair[1].date, pair[0].created_at))

        finalized = []
        with self._lock:
            for item, reference in resolved:
                if item not in self._pending:
                    # 查询期间已被撤销
                    continue
                try:
                    trade = self._finalize(item, reference)
                except InsufficientShareError as e:
                    logger.error(f"待确认交易 {item.id} 无法确认: {e}")
                    continue
                self._pending.remove(item)
                finalized.append(trade)

            if finalized:
                self._save()

        if finalized:
            logger.info(f"已确认 {len(finalized)} 笔待确认交易，剩余 {len(self.pending())} 笔")
        return finalized

    def revoke_pending(self, pending_id: str) -> bool:
        """
        撤销待确认交易，持仓不变

        Args:
            pending_id: 待确认交易ID

        Returns:
            是否找到并撤销
        """
        with self._lock:
            for item in self._pending:
                if item.id == pending_id:
                    self._pending.remove(item)
                    self._save()
                    logger.info(f"已撤销待确认交易: {item.fund_code} {item.type.label} {item.date}")
                    return True
        return False

    # ------------------------------------------------------------------
    # 历史记录

    def delete_trade(self, trade_id: str) -> bool:
        """
        删除已确认交易

        持仓不会回滚：删除记录只影响历史列表，已变更的持仓份额保持不变。

        Args:
            trade_id: 交易ID

        Returns:
            是否找到并删除
        """
        with self._lock:
            for trade in self._history:
                if trade.id == trade_id:
                    self._history.remove(trade)
                    self._save()
                    logger.info(f"已删除交易记录 {trade_id}（持仓未变更）")
                    return True
        return False

    def add_history(
        self,
        fund_code: str,
        trade_type: Union[TradeType, str],
        date: str,
        amount: float
    ) -> Trade:
        """
        补录历史交易

        按该日期的净值计算份额，记录日期使用实际净值日期；只写入历史，不修改持仓。

        Args:
            fund_code: 基金代码
            trade_type: buy/sell
            date: 交易日期
            amount: 金额

        Returns:
            交易记录

        Raises:
            TradeValidationError: 参数无效
            NetValueUnavailable: 未找到该日期的净值
        """
        self._validate_common(fund_code, date)
        try:
            kind = TradeType(trade_type)
        except ValueError:
            raise TradeValidationError(f"无效的交易类型: {trade_type}")
        if amount is None or amount <= 0:
            raise TradeValidationError("金额必须大于0")

        reference = self._resolve(fund_code, date, False)
        if reference is None:
            raise NetValueUnavailable(f"未找到 {fund_code} 在 {date} 的净值数据")

        nav_date = parse_date(reference.date)
        trade = Trade(
            id=new_trade_id(),
            fund_code=fund_code,
            type=kind,
            date=reference.date,
            amount=float(amount),
            share=amount / reference.value,
            price=reference.value,
            timestamp=int(nav_date.timestamp() * 1000) if nav_date else int(time.time() * 1000),
        )

        with self._lock:
            self._history.append(trade)
            self._save()

        logger.info(f"已补录历史交易: {fund_code} {kind.label} {trade.date}")
        return trade
