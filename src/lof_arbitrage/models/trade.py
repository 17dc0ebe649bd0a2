"""持仓与交易记录数据模型定义"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


def new_trade_id() -> str:
    return uuid.uuid4().hex


class TradeType(Enum):
    """交易方向"""
    BUY = "buy"
    SELL = "sell"

    @property
    def label(self) -> str:
        return '买入' if self is TradeType.BUY else '卖出'


class FeeMode(Enum):
    """卖出手续费计算方式"""
    RATE = "rate"      # 按费率(%)
    AMOUNT = "amount"  # 固定金额


@dataclass
class Holding:
    """基金持仓"""

    fund_code: str               # 基金代码
    share: float = 0.0           # 持有份额

    def to_dict(self) -> Dict[str, Any]:
        return {'fundCode': self.fund_code, 'share': self.share}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Holding':
        return cls(fund_code=str(data['fundCode']), share=float(data.get('share') or 0))


@dataclass(frozen=True)
class Trade:
    """已确认的交易记录（历史）"""

    id: str
    fund_code: str
    type: TradeType
    date: str                    # 确认净值日期
    amount: float                # 金额
    share: float                 # 份额
    price: float                 # 确认净值
    timestamp: int               # 毫秒时间戳

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'fundCode': self.fund_code,
            'type': self.type.value,
            'date': self.date,
            'amount': self.amount,
            'share': self.share,
            'price': self.price,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Trade':
        return cls(
            id=str(data['id']),
            fund_code=str(data['fundCode']),
            type=TradeType(data['type']),
            date=str(data['date']),
            amount=float(data['amount']),
            share=float(data['share']),
            price=float(data['price']),
            timestamp=int(data.get('timestamp') or 0),
        )


@dataclass(frozen=True)
class PendingTrade:
    """
    待确认交易

    提交时净值尚未公布，金额/份额与费率参数在提交时快照保存，
    净值公布后再据此计算，不读取任何后续编辑的数据。
    """

    fund_code: str
    type: TradeType
    date: str                    # 用户填写的交易日期
    is_after_3pm: bool           # 是否15:00后提交
    amount: Optional[float] = None   # 买入金额
    share: Optional[float] = None    # 卖出份额
    fee_rate: float = 0.0        # 买入费率(%)
    fee_mode: FeeMode = FeeMode.RATE
    fee_value: float = 0.0       # 卖出费率(%)或固定费用
    id: str = field(default_factory=new_trade_id)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec='seconds'))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'fundCode': self.fund_code,
            'type': self.type.value,
            'date': self.date,
            'isAfter3pm': self.is_after_3pm,
            'amount': self.amount,
            'share': self.share,
            'feeRate': self.fee_rate,
            'feeMode': self.fee_mode.value,
            'feeValue': self.fee_value,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PendingTrade':
        amount = data.get('amount')
        share = data.get('share')
        return cls(
            id=str(data['id']),
            fund_code=str(data['fundCode']),
            type=TradeType(data['type']),
            date=str(data['date']),
            is_after_3pm=bool(data.get('isAfter3pm')),
            amount=float(amount) if amount is not None else None,
            share=float(share) if share is not None else None,
            fee_rate=float(data.get('feeRate') or 0),
            fee_mode=FeeMode(data.get('feeMode') or FeeMode.RATE.value),
            fee_value=float(data.get('feeValue') or 0),
            created_at=str(data.get('createdAt') or ''),
        )
