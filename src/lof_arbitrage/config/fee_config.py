"""
套利手续费配置

按基金类型提供固定费率表，进程生命周期内不可变。
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Union

from ..models.fund import FundType


@dataclass(frozen=True)
class FeeSchedule:
    """费率表（小数形式，0.012 表示 1.2%）"""
    subscription_fee: float = 0.0            # 申购费率
    subscription_fee_discount: float = 0.0   # 优惠申购费率
    redemption_fee: float = 0.0              # 赎回费率
    redemption_fee_discount: float = 0.0     # 优惠赎回费率
    commission: float = 0.0003               # 场内交易佣金
    min_commission: float = 5.0              # 最低佣金(元)

    def subscription_rate(self, use_discount: bool = False) -> float:
        return self.subscription_fee_discount if use_discount else self.subscription_fee

    def redemption_rate(self, use_discount: bool = False) -> float:
        return self.redemption_fee_discount if use_discount else self.redemption_fee

    def commission_amount(self, trade_amount: float) -> float:
        """按比例计算佣金，不足最低佣金按最低佣金收取"""
        return max(trade_amount * self.commission, self.min_commission)


FEE_CONFIG: Mapping[FundType, FeeSchedule] = MappingProxyType({
    FundType.LOF: FeeSchedule(
        subscription_fee=0.012,
        subscription_fee_discount=0.001,
        redemption_fee=0.005,
        redemption_fee_discount=0.0025,
        commission=0.0003,
        min_commission=5,
    ),
    FundType.ETF: FeeSchedule(
        subscription_fee=0,
        redemption_fee=0,
        commission=0.0003,
        min_commission=5,
    ),
})


def get_fee_schedule(fund_type: Union[FundType, str, None] = FundType.LOF) -> FeeSchedule:
    """
    获取基金类型对应的费率表

    Args:
        fund_type: 基金类型，未知类型使用LOF费率

    Returns:
        费率表
    """
    return FEE_CONFIG[FundType.parse(fund_type)]
