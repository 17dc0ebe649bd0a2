"""
加减仓计算

确认日期推算、买入份额、卖出到账金额和可卖份额的计算。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from ..models.trade import FeeMode, Holding, PendingTrade, TradeType
from ..utils.helpers import parse_date

# 当日申赎截止时间
CUTOFF_HOUR = 15


@dataclass(frozen=True)
class SellEstimate:
    """卖出测算"""
    sell_amount: float           # 卖出金额
    fee: float                   # 手续费
    estimated_return: float      # 预计到账


def settlement_query_date(date: str, is_after_3pm: bool) -> str:
    """
    计算用于查询确认净值的日期

    15:00前提交按当日净值确认，15:00后提交顺延一个自然日，
    非交易日由净值查询接口顺延到下一个已公布净值的交易日。

    Args:
        date: 交易日期 YYYY-MM-DD
        is_after_3pm: 是否15:00后提交

    Returns:
        查询日期 YYYY-MM-DD

    Raises:
        ValueError: 日期格式无效
    """
    parsed = parse_date(date)
    if parsed is None:
        raise ValueError(f"无效的日期: {date}")

    if is_after_3pm:
        parsed += timedelta(days=1)
    return parsed.strftime('%Y-%m-%d')


def default_after_cutoff(now: Optional[datetime] = None, cutoff_hour: int = CUTOFF_HOUR) -> bool:
    """当前时间是否已过申赎截止时间"""
    now = now or datetime.now()
    return now.hour >= cutoff_hour


def calc_buy_share(amount: float, fee_rate: float, price: float) -> Optional[float]:
    """
    计算买入份额

    买入金额已包含申购费：净申购金额 = 金额 / (1 + 费率)，份额 = 净申购金额 / 净值。

    Args:
        amount: 买入金额
        fee_rate: 申购费率(%)
        price: 确认净值

    Returns:
        份额；净值未知(<=0)时返回None
    """
    if not price or price <= 0:
        return None
    net_amount = amount / (1 + fee_rate / 100)
    return net_amount / price


def calc_sell(
    share: float,
    price: float,
    fee_mode: Union[FeeMode, str] = FeeMode.RATE,
    fee_value: float = 0.0
) -> SellEstimate:
    """
    计算卖出到账金额

    Args:
        share: 卖出份额
        price: 确认净值
        fee_mode: 手续费方式，rate 为费率(%)，amount 为固定金额
        fee_value: 费率或固定金额

    Returns:
        卖出测算
    """
    sell_amount = share * price
    if FeeMode(fee_mode) is FeeMode.RATE:
        fee = sell_amount * (fee_value or 0) / 100
    else:
        fee = fee_value or 0

    return SellEstimate(sell_amount=sell_amount, fee=fee, estimated_return=sell_amount - fee)


def pending_sell_share(pending: Iterable[PendingTrade], fund_code: str) -> float:
    """待确认卖出占用的份额"""
    return sum(
        (trade.share or 0)
        for trade in pending
        if trade.fund_code == fund_code and trade.type is TradeType.SELL
    )


def available_share(holding: Optional[Holding], pending: Iterable[PendingTrade]) -> float:
    """
    可卖份额 = 持有份额 - 待确认卖出份额，最小为0

    Args:
        holding: 持仓，None表示未持有
        pending: 待确认交易

    Returns:
        可卖份额
    """
    if holding is None:
        return 0.0
    return max(0.0, holding.share - pending_sell_share(pending, holding.fund_code))
