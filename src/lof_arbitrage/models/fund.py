"""基金与套利数据模型定义"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..utils.helpers import safe_float


class FundType(Enum):
    """基金类型"""
    LOF = "LOF"
    ETF = "ETF"

    @classmethod
    def parse(cls, value) -> 'FundType':
        """解析基金类型，未知类型按LOF处理"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.LOF


class ArbitrageType(Enum):
    """套利类型"""
    PREMIUM = "premium"    # 溢价套利：场外申购 -> 场内卖出
    DISCOUNT = "discount"  # 折价套利：场内买入 -> 场外赎回


@dataclass(frozen=True)
class FundRef:
    """基金基本信息（静态目录）"""

    code: str                    # 基金代码
    name: str                    # 基金名称
    type: FundType               # 基金类型


@dataclass
class FundQuote:
    """场内实时行情"""

    code: str                    # 基金代码
    name: str                    # 基金名称
    price: float = 0.0           # 最新价
    change: float = 0.0          # 涨跌额
    change_pct: float = 0.0      # 涨跌幅(%)
    volume: float = 0.0          # 成交量
    amount: float = 0.0          # 成交额
    high: float = 0.0            # 最高价
    low: float = 0.0             # 最低价
    open_price: float = 0.0      # 开盘价
    pre_close: float = 0.0       # 昨收价
    time: str = ""               # 行情时间

    @classmethod
    def from_raw(cls, code: str, raw: Mapping[str, Any]) -> 'FundQuote':
        """
        从原始行情字段构建，无法解析的数值一律置0

        Args:
            code: 基金代码
            raw: 原始字段（中文列名）

        Returns:
            行情对象
        """
        price = safe_float(raw.get('最新价'))
        change = safe_float(raw.get('涨跌额'))
        pre_close = safe_float(raw.get('昨收'))
        if not pre_close and change:
            pre_close = price - change

        return cls(
            code=code,
            name=str(raw.get('名称') or ''),
            price=price,
            change=change,
            change_pct=safe_float(raw.get('涨跌幅')),
            volume=safe_float(raw.get('成交量')),
            amount=safe_float(raw.get('成交额')),
            high=safe_float(raw.get('最高价')),
            low=safe_float(raw.get('最低价')),
            open_price=safe_float(raw.get('开盘价')),
            pre_close=pre_close,
            time=str(raw.get('更新时间') or ''),
        )


@dataclass(frozen=True)
class ReferenceValue:
    """参考净值（IOPV或单位净值）"""

    value: float                 # 净值
    date: str                    # 净值日期 YYYY-MM-DD

    @property
    def is_valid(self) -> bool:
        return self.value is not None and self.value > 0


@dataclass
class LofNav:
    """LOF净值估算数据"""

    nav: Optional[float]         # 上一交易日单位净值
    gsz: Optional[float]         # 盘中估算净值
    name: str = ""
    gszzl: Optional[float] = None  # 估算涨跌幅(%)

    @property
    def reference_price(self) -> Optional[float]:
        """优先使用估算净值，其次单位净值"""
        return self.gsz or self.nav or None


@dataclass(frozen=True)
class PremiumDiscount:
    """折溢价数据"""

    code: str                    # 基金代码
    price: float                 # 场内价格
    reference_value: float       # 参考净值
    premium_discount_percent: float  # 折溢价率(%)，正数为溢价，负数为折价

    @classmethod
    def compute(
        cls,
        code: str,
        price: Optional[float],
        reference_value: Optional[float]
    ) -> Optional['PremiumDiscount']:
        """数据不完整时返回None，而不是0"""
        from ..analysis.arbitrage import calculate_premium_discount

        percent = calculate_premium_discount(price, reference_value)
        if percent is None:
            return None
        return cls(code=code, price=price, reference_value=reference_value,
                   premium_discount_percent=percent)

    @property
    def direction(self) -> Optional[ArbitrageType]:
        if self.premium_discount_percent > 0:
            return ArbitrageType.PREMIUM
        if self.premium_discount_percent < 0:
            return ArbitrageType.DISCOUNT
        return None

    @property
    def direction_label(self) -> str:
        return '溢价' if self.premium_discount_percent > 0 else '折价'


@dataclass(frozen=True)
class FeeDetail:
    """单项费用明细"""

    rate: float                  # 费率(%)
    amount: float                # 金额


@dataclass
class ArbitrageResult:
    """套利收益测算结果"""

    strategy: ArbitrageType
    amount: float                # 投入金额
    shares: float                # 份额
    total_fees: float            # 总费用
    net_profit: float            # 净收益
    profit_percent: float        # 收益率(%)
    fee_details: Dict[str, FeeDetail] = field(default_factory=dict)

    # 溢价套利字段
    reference_value: Optional[float] = None
    sell_price: Optional[float] = None
    sell_amount: Optional[float] = None
    subscription_fee: Optional[float] = None
    commission: Optional[float] = None

    # 折价套利字段
    buy_price: Optional[float] = None
    nav: Optional[float] = None
    buy_commission: Optional[float] = None
    redemption_amount: Optional[float] = None
    redemption_fee: Optional[float] = None


@dataclass(frozen=True)
class ArbitrageError:
    """参数不完整等输入错误，作为结果对象返回而非抛出"""

    error: str


@dataclass(frozen=True)
class ProfitabilityVerdict:
    """套利可行性判断"""

    profitable: bool
    strategy: Optional[ArbitrageType]
    message: str
    threshold: float             # 成本线(%)


@dataclass(frozen=True)
class ArbitrageAdvice:
    """套利建议"""

    has_opportunity: bool
    advice: str
    arbitrage_type: Optional[ArbitrageType] = None
    premium_discount_percent: Optional[float] = None
    risk_level: Optional[str] = None


@dataclass
class MarketRow:
    """折溢价列表中的一行"""

    fund: FundRef
    quote: Optional[FundQuote] = None
    reference_value: Optional[float] = None
    premium_discount: Optional[float] = None
    premium_discount_percent: Optional[float] = None

    @property
    def code(self) -> str:
        return self.fund.code

    @property
    def type(self) -> FundType:
        return self.fund.type
