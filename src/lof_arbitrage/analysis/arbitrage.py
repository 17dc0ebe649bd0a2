"""
折溢价套利计算

提供折溢价率计算、两种套利策略的收益测算、手续费计算和可行性判断。
所有函数均为纯函数，只依赖输入参数和静态费率表。

数据缺失（行情或净值为None）时返回None；参数不完整时返回 ArbitrageError，
由调用方直接展示 result.error，不抛出异常。
"""

from typing import Optional, Union

from ..config.fee_config import get_fee_schedule
from ..models.fund import (
    ArbitrageAdvice,
    ArbitrageError,
    ArbitrageResult,
    ArbitrageType,
    FeeDetail,
    FundQuote,
    FundType,
    ProfitabilityVerdict,
)

# 成本线之上的安全边际(百分点)
SAFETY_MARGIN = 0.3

INCOMPLETE_PARAMS = '参数不完整'

FundTypeLike = Union[FundType, str]


def calculate_premium_discount(
    price: Optional[float],
    reference_value: Optional[float]
) -> Optional[float]:
    """
    计算折溢价率

    Args:
        price: 场内价格
        reference_value: 参考净值 (IOPV/NAV)

    Returns:
        折溢价率(%)，正数为溢价，负数为折价；数据不完整返回None
    """
    if not price or not reference_value or reference_value <= 0 or price < 0:
        return None
    return (price - reference_value) / reference_value * 100


def calculate_premium_arbitrage(
    amount: Optional[float],
    reference_value: Optional[float],
    sell_price: Optional[float],
    shares: Optional[float] = None,
    fund_type: FundTypeLike = FundType.LOF,
    use_discount_fee: bool = False
) -> Union[ArbitrageResult, ArbitrageError]:
    """
    计算溢价套利收益（场外申购 -> 场内卖出）

    Args:
        amount: 投入金额
        reference_value: 申购时净值
        sell_price: 场内卖出价格
        shares: 申购份额，不传则按金额/净值计算
        fund_type: 基金类型
        use_discount_fee: 是否使用优惠申购费率

    Returns:
        测算结果，参数不完整时返回 ArbitrageError
    """
    if not amount or not reference_value or not sell_price:
        return ArbitrageError(INCOMPLETE_PARAMS)

    fees = get_fee_schedule(fund_type)

    actual_shares = shares if shares else amount / reference_value

    subscription_rate = fees.subscription_rate(use_discount_fee)
    subscription_fee = amount * subscription_rate

    sell_amount = actual_shares * sell_price
    commission = fees.commission_amount(sell_amount)

    total_fees = subscription_fee + commission
    net_profit = sell_amount - amount - total_fees

    return ArbitrageResult(
        strategy=ArbitrageType.PREMIUM,
        amount=amount,
        shares=actual_shares,
        total_fees=total_fees,
        net_profit=net_profit,
        profit_percent=net_profit / amount * 100,
        fee_details={
            'subscription': FeeDetail(rate=subscription_rate * 100, amount=subscription_fee),
            'commission': FeeDetail(rate=fees.commission * 100, amount=commission),
        },
        reference_value=reference_value,
        sell_price=sell_price,
        sell_amount=sell_amount,
        subscription_fee=subscription_fee,
        commission=commission,
    )


def calculate_discount_arbitrage(
    amount: Optional[float],
    buy_price: Optional[float],
    nav: Optional[float],
    fund_type: FundTypeLike = FundType.LOF,
    use_discount_fee: bool = False
) -> Union[ArbitrageResult, ArbitrageError]:
    """
    计算折价套利收益（场内买入 -> 场外赎回）

    佣金先从投入金额中扣除，剩余金额按买入价折算份额。

    Args:
        amount: 投入金额
        buy_price: 场内买入价格
        nav: 赎回时净值
        fund_type: 基金类型
        use_discount_fee: 是否使用优惠赎回费率

    Returns:
        测算结果，参数不完整时返回 ArbitrageError
    """
    if not amount or not buy_price or not nav:
        return ArbitrageError(INCOMPLETE_PARAMS)

    fees = get_fee_schedule(fund_type)

    buy_commission = fees.commission_amount(amount)
    shares = (amount - buy_commission) / buy_price

    redemption_rate = fees.redemption_rate(use_discount_fee)
    redemption_amount = shares * nav
    redemption_fee = redemption_amount * redemption_rate

    total_fees = buy_commission + redemption_fee
    net_profit = redemption_amount - amount - total_fees

    return ArbitrageResult(
        strategy=ArbitrageType.DISCOUNT,
        amount=amount,
        shares=shares,
        total_fees=total_fees,
        net_profit=net_profit,
        profit_percent=net_profit / amount * 100,
        fee_details={
            'commission': FeeDetail(rate=fees.commission * 100, amount=buy_commission),
            'redemption': FeeDetail(rate=redemption_rate * 100, amount=redemption_fee),
        },
        buy_price=buy_price,
        nav=nav,
        buy_commission=buy_commission,
        redemption_amount=redemption_amount,
        redemption_fee=redemption_fee,
    )


def calculate_arbitrage_profit(
    arbitrage_type: Union[ArbitrageType, str],
    **params
) -> Union[ArbitrageResult, ArbitrageError]:
    """
    统一套利计算入口

    Args:
        arbitrage_type: 套利类型 (premium/discount)
        **params: 对应策略函数的参数

    Returns:
        测算结果
    """
    try:
        kind = ArbitrageType(arbitrage_type)
    except ValueError:
        return ArbitrageError('未知的套利类型')

    if kind is ArbitrageType.PREMIUM:
        return calculate_premium_arbitrage(**params)
    return calculate_discount_arbitrage(**params)


def calculate_fees(
    amount: float,
    fee_type: str,
    fund_type: FundTypeLike = FundType.LOF,
    use_discount_fee: bool = False
) -> FeeDetail:
    """
    计算单项手续费

    Args:
        amount: 金额
        fee_type: 费用类型 (subscription/redemption/commission)
        fund_type: 基金类型
        use_discount_fee: 是否使用优惠费率

    Returns:
        手续费明细（费率为百分数）
    """
    fees = get_fee_schedule(fund_type)

    if fee_type == 'subscription':
        rate = fees.subscription_rate(use_discount_fee)
        return FeeDetail(rate=rate * 100, amount=amount * rate)
    if fee_type == 'redemption':
        rate = fees.redemption_rate(use_discount_fee)
        return FeeDetail(rate=rate * 100, amount=amount * rate)
    if fee_type == 'commission':
        return FeeDetail(rate=fees.commission * 100, amount=fees.commission_amount(amount))

    return FeeDetail(rate=0, amount=0)


def profitability_threshold(fund_type: FundTypeLike = FundType.LOF) -> float:
    """
    套利成本线(%)：申购费 + 赎回费 + 两次佣金，再加安全边际

    每次按当前费率表重新计算。
    """
    fees = get_fee_schedule(fund_type)
    total_fee_percent = (fees.subscription_fee + fees.redemption_fee + fees.commission * 2) * 100
    return total_fee_percent + SAFETY_MARGIN


def is_arbitrage_profitable(
    premium_discount_percent: float,
    fund_type: FundTypeLike = FundType.LOF
) -> ProfitabilityVerdict:
    """
    判断折溢价是否足以覆盖交易成本

    Args:
        premium_discount_percent: 折溢价率(%)
        fund_type: 基金类型

    Returns:
        判断结果
    """
    threshold = profitability_threshold(fund_type)
    percent = premium_discount_percent

    if percent > threshold:
        return ProfitabilityVerdict(
            profitable=True,
            strategy=ArbitrageType.PREMIUM,
            message=f"溢价{percent:.2f}%，超过成本线{threshold:.2f}%",
            threshold=threshold,
        )
    if percent < -threshold:
        return ProfitabilityVerdict(
            profitable=True,
            strategy=ArbitrageType.DISCOUNT,
            message=f"折价{abs(percent):.2f}%，超过成本线{threshold:.2f}%",
            threshold=threshold,
        )

    return ProfitabilityVerdict(
        profitable=False,
        strategy=None,
        message=f"折溢价率{percent:.2f}%，不足以覆盖交易成本",
        threshold=threshold,
    )


def _risk_level(percent: float) -> str:
    magnitude = abs(percent)
    if magnitude > 5:
        return 'high'
    if magnitude > 3:
        return 'medium'
    return 'low'


def get_arbitrage_advice(
    quote: Optional[FundQuote],
    reference_value: Optional[float],
    fund_type: FundTypeLike = FundType.LOF
) -> ArbitrageAdvice:
    """
    根据行情和参考净值给出套利建议

    Args:
        quote: 场内行情
        reference_value: 参考净值
        fund_type: 基金类型

    Returns:
        套利建议
    """
    percent = None
    if quote is not None:
        percent = calculate_premium_discount(quote.price, reference_value)

    if percent is None:
        return ArbitrageAdvice(has_opportunity=False, advice='数据不完整，无法判断')

    verdict = is_arbitrage_profitable(percent, fund_type)
    return ArbitrageAdvice(
        has_opportunity=verdict.profitable,
        advice=verdict.message,
        arbitrage_type=verdict.strategy,
        premium_discount_percent=percent,
        risk_level=_risk_level(percent),
    )
