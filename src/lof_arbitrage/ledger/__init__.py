"""
交易账本模块

提供加减仓计算、确认净值查询和持仓/交易记录管理。
"""

from .calculations import available_share, calc_buy_share, calc_sell, settlement_query_date
from .resolver import Resolution, SettlementResolver
from .trade_ledger import (
    InsufficientShareError,
    LedgerError,
    NetValueUnavailable,
    SubmitResult,
    TradeLedger,
    TradeValidationError,
)

__all__ = [
    "available_share",
    "calc_buy_share",
    "calc_sell",
    "settlement_query_date",
    "Resolution",
    "SettlementResolver",
    "TradeLedger",
    "SubmitResult",
    "LedgerError",
    "TradeValidationError",
    "InsufficientShareError",
    "NetValueUnavailable",
]
