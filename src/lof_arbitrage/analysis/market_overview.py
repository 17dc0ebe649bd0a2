"""折溢价列表筛选与市场统计"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import pandas as pd

from ..models.fund import FundType, MarketRow

# 高溢价/高折价的判断线(%)
HIGH_DEVIATION = 3.0
# 市场整体偏向的判断线(%)
SENTIMENT_BAND = 0.5


@dataclass
class MarketStats:
    """市场折溢价统计"""
    total: int = 0
    premium_count: int = 0
    discount_count: int = 0
    high_premium: int = 0
    high_discount: int = 0
    average: float = 0.0
    max_premium: float = 0.0
    max_discount: float = 0.0

    @property
    def sentiment(self) -> str:
        """市场整体偏向"""
        if self.average > SENTIMENT_BAND:
            return '偏溢价'
        if self.average < -SENTIMENT_BAND:
            return '偏折价'
        return '相对平衡'


def rows_to_frame(rows: Sequence[MarketRow]) -> pd.DataFrame:
    """
    将折溢价列表转换为DataFrame

    Args:
        rows: 折溢价列表

    Returns:
        DataFrame，列: 代码, 名称, 类型, 现价, 参考净值, 折溢价率
    """
    records = [
        {
            '代码': row.fund.code,
            '名称': row.fund.name,
            '类型': row.fund.type.value,
            '现价': row.quote.price if row.quote else None,
            '参考净值': row.reference_value,
            '折溢价率': row.premium_discount_percent,
        }
        for row in rows
    ]
    columns = ['代码', '名称', '类型', '现价', '参考净值', '折溢价率']
    return pd.DataFrame.from_records(records, columns=columns)


def filter_and_sort(
    rows: Sequence[MarketRow],
    fund_type: Optional[Union[FundType, str]] = None,
    threshold: Optional[float] = None,
    order: str = 'desc'
) -> List[MarketRow]:
    """
    按类型、阈值筛选并按折溢价率排序

    Args:
        rows: 折溢价列表
        fund_type: 只保留该类型，None表示全部
        threshold: 只保留 |折溢价率| >= threshold 的基金，数据缺失的基金被排除
        order: 'desc' 降序 或 'asc' 升序，数据缺失的基金始终排在最后

    Returns:
        筛选排序后的列表
    """
    result = list(rows)

    if fund_type:
        wanted = FundType.parse(fund_type)
        result = [row for row in result if row.fund.type is wanted]

    if threshold is not None and threshold > 0:
        result = [
            row for row in result
            if row.premium_discount_percent is not None
            and abs(row.premium_discount_percent) >= threshold
        ]

    known = [row for row in result if row.premium_discount_percent is not None]
    unknown = [row for row in result if row.premium_discount_percent is None]
    known.sort(key=lambda row: row.premium_discount_percent, reverse=(order == 'desc'))

    return known + unknown


def summarize(rows: Sequence[MarketRow]) -> MarketStats:
    """
    统计折溢价分布，数据缺失的基金不参与统计

    Args:
        rows: 折溢价列表

    Returns:
        统计结果
    """
    series = rows_to_frame(rows)['折溢价率'].dropna().astype(float)

    if series.empty:
        return MarketStats()

    return MarketStats(
        total=int(series.size),
        premium_count=int((series > 0).sum()),
        discount_count=int((series < 0).sum()),
        high_premium=int((series > HIGH_DEVIATION).sum()),
        high_discount=int((series < -HIGH_DEVIATION).sum()),
        average=float(series.mean()),
        max_premium=float(series.max()),
        max_discount=float(series.min()),
    )
