"""数据获取服务 - 基于akshare获取LOF/ETF行情、IOPV和净值"""

import json
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

import akshare as ak
import pandas as pd
import requests

from ..analysis.arbitrage import calculate_premium_discount
from ..models.fund import FundQuote, FundRef, FundType, LofNav, MarketRow, ReferenceValue
from ..utils.helpers import parse_date, safe_float
from ..utils.retry import retry

logger = logging.getLogger(__name__)

FUNDGZ_URL = "https://fundgz.1234567.com.cn/js/{code}.js"

_JSONPGZ_RE = re.compile(r"jsonpgz\((\{.*\})\)\s*;?\s*$", re.S)


class DataUnavailable(Exception):
    """数据源暂无数据"""


class FundDataService:
    """
    LOF/ETF数据获取服务

    数据源:
    - 场内行情: fund_etf_spot_em / fund_lof_spot_em (东方财富)
    - ETF IOPV: fund_etf_spot_em 的 IOPV实时估值 列，缺失时使用天天基金估值
    - LOF 估值: 天天基金 fundgz 接口
    - 历史净值: fund_open_fund_info_em 单位净值走势

    对外的 fetch_* 方法失败时一律返回None，不抛出异常。
    """

    SPOT_CACHE_SECONDS = 10
    NAV_CACHE_SECONDS = 600

    def __init__(self, timeout: float = 5.0, session: Optional[requests.Session] = None):
        """
        初始化数据服务

        Args:
            timeout: HTTP请求超时（秒）
            session: 可选的requests会话
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self._spot_cache: Dict[FundType, pd.DataFrame] = {}  # 行情表缓存
        self._spot_cache_time: Dict[FundType, datetime] = {}
        self._nav_cache: Dict[str, pd.DataFrame] = {}  # 历史净值缓存
        self._nav_cache_time: Dict[str, datetime] = {}

    @staticmethod
    def _is_fresh(cached_at: Optional[datetime], max_age: float) -> bool:
        return cached_at is not None and (datetime.now() - cached_at).total_seconds() < max_age

    @retry(max_attempts=2, delay=1.0)
    def get_spot_table(self, fund_type: FundType, refresh: bool = False) -> pd.DataFrame:
        """
        获取场内实时行情表（全市场）

        Args:
            fund_type: 基金类型
            refresh: 是否强制刷新缓存

        Returns:
            行情DataFrame，代码列为6位字符串
        """
        if not refresh and fund_type in self._spot_cache:
            if self._is_fresh(self._spot_cache_time.get(fund_type), self.SPOT_CACHE_SECONDS):
                return self._spot_cache[fund_type]

        if fund_type is FundType.ETF:
            df = ak.fund_etf_spot_em()
        else:
            df = ak.fund_lof_spot_em()

        df = df.copy()
        df['代码'] = df['代码'].astype(str).str.zfill(6)

        self._spot_cache[fund_type] = df
        self._spot_cache_time[fund_type] = datetime.now()
        return df

    def _spot_row(self, code: str, fund_type: FundType) -> Optional[pd.Series]:
        df = self.get_spot_table(fund_type)
        matched = df[df['代码'] == code]
        if matched.empty:
            return None
        return matched.iloc[0]

    def fetch_quote(self, code: str, fund_type: FundType = FundType.ETF) -> Optional[FundQuote]:
        """
        获取场内实时行情

        Args:
            code: 基金代码
            fund_type: 基金类型

        Returns:
            行情数据，失败返回None
        """
        try:
            row = self._spot_row(code, FundType.parse(fund_type))
        except Exception as e:
            logger.warning(f"获取行情失败 {code}: {e}")
            return None

        if row is None:
            logger.info(f"行情表中未找到 {code}")
            return None

        return FundQuote.from_raw(code, row.to_dict())

    @retry(max_attempts=2, delay=0.5, exceptions=(requests.RequestException,))
    def _get_fundgz(self, code: str) -> str:
        resp = self.session.get(
            FUNDGZ_URL.format(code=code),
            params={'rt': int(datetime.now().timestamp() * 1000)},
            headers={
                'User-Agent': 'Mozilla/5.0 lof_arbitrage',
                'Referer': 'https://fund.eastmoney.com/',
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.text

    @staticmethod
    def parse_fundgz(text: str) -> Optional[LofNav]:
        """
        解析天天基金估值接口的JSONP响应

        Args:
            text: 形如 jsonpgz({...}); 的响应文本

        Returns:
            估值数据，无法解析返回None
        """
        match = _JSONPGZ_RE.search((text or '').strip())
        if not match:
            return None

        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError:
            return None

        def _optional(key: str) -> Optional[float]:
            value = safe_float(data.get(key), default=0.0)
            return value if value else None

        return LofNav(
            nav=_optional('dwjz'),
            gsz=_optional('gsz'),
            name=str(data.get('name') or ''),
            gszzl=_optional('gszzl'),
        )

    def fetch_lof_nav(self, code: str) -> Optional[LofNav]:
        """
        获取LOF基金估值与单位净值

        Args:
            code: 基金代码

        Returns:
            估值数据，失败返回None
        """
        try:
            text = self._get_fundgz(code)
        except Exception as e:
            logger.warning(f"获取估值失败 {code}: {e}")
            return None
        return self.parse_fundgz(text)

    def fetch_iopv(self, code: str) -> Optional[float]:
        """
        获取ETF的IOPV（实时参考净值）

        Args:
            code: ETF代码

        Returns:
            IOPV，失败返回None
        """
        try:
            row = self._spot_row(code, FundType.ETF)
        except Exception as e:
            logger.warning(f"获取IOPV失败 {code}: {e}")
            row = None

        if row is not None:
            iopv = safe_float(row.get('IOPV实时估值'))
            if iopv > 0:
                return iopv

        # 行情表没有IOPV时，退回天天基金估值
        nav = self.fetch_lof_nav(code)
        return nav.reference_price if nav else None

    def fetch_reference_value(self, fund: FundRef) -> Optional[float]:
        """
        获取套利基准净值：ETF使用IOPV，LOF使用估算净值或单位净值

        Args:
            fund: 基金

        Returns:
            参考净值，失败返回None
        """
        if fund.type is FundType.ETF:
            return self.fetch_iopv(fund.code)

        nav = self.fetch_lof_nav(fund.code)
        return nav.reference_price if nav else None

    @retry(max_attempts=2, delay=1.0)
    def get_nav_history(self, code: str, refresh: bool = False) -> pd.DataFrame:
        """
        获取单位净值历史

        Args:
            code: 基金代码
            refresh: 是否强制刷新缓存

        Returns:
            DataFrame，列: 净值日期(YYYY-MM-DD字符串), 单位净值，按日期升序
        """
        if not refresh and code in self._nav_cache:
            if self._is_fresh(self._nav_cache_time.get(code), self.NAV_CACHE_SECONDS):
                return self._nav_cache[code]

        df = ak.fund_open_fund_info_em(symbol=code, indicator="单位净值走势")
        if df is None or df.empty:
            raise DataUnavailable(f"{code} 无净值数据")

        df = df[['净值日期', '单位净值']].copy()
        df['净值日期'] = pd.to_datetime(df['净值日期']).dt.strftime('%Y-%m-%d')
        df['单位净值'] = pd.to_numeric(df['单位净值'], errors='coerce')
        df = df.dropna().sort_values('净值日期').reset_index(drop=True)

        self._nav_cache[code] = df
        self._nav_cache_time[code] = datetime.now()
        return df

    def fetch_smart_fund_net_value(self, code: str, date: str) -> Optional[ReferenceValue]:
        """
        获取指定日期对应的确认净值

        非交易日按之后第一个已公布净值的交易日确认，返回的日期为实际净值日期。

        Args:
            code: 基金代码
            date: 查询日期 YYYY-MM-DD

        Returns:
            确认净值，尚未公布或获取失败返回None
        """
        target = parse_date(date)
        if target is None:
            logger.warning(f"无效的日期: {date}")
            return None

        target_str = target.strftime('%Y-%m-%d')
        try:
            reference = self._first_nav_from(self.get_nav_history(code), target_str)
            if reference is None:
                # 缓存的净值历史可能早于新公布的净值，强制刷新再查一次
                reference = self._first_nav_from(self.get_nav_history(code, refresh=True), target_str)
        except Exception as e:
            logger.warning(f"获取净值历史失败 {code}: {e}")
            return None
        return reference

    @staticmethod
    def _first_nav_from(df: pd.DataFrame, date: str) -> Optional[ReferenceValue]:
        candidates = df[df['净值日期'] >= date]
        if candidates.empty:
            return None

        row = candidates.iloc[0]
        value = float(row['单位净值'])
        if value <= 0:
            return None
        return ReferenceValue(value=value, date=str(row['净值日期']))

    def fetch_batch_quotes(self, funds: List[FundRef]) -> List[MarketRow]:
        """
        批量获取行情和折溢价（逐只顺序获取）

        Args:
            funds: 基金列表

        Returns:
            折溢价列表，获取失败的基金对应字段为None
        """
        rows = []
        for fund in funds:
            quote = self.fetch_quote(fund.code, fund.type)
            if quote is None:
                rows.append(MarketRow(fund=fund))
                continue

            reference = self.fetch_reference_value(fund)
            percent = calculate_premium_discount(quote.price, reference)
            rows.append(MarketRow(
                fund=fund,
                quote=quote,
                reference_value=reference,
                premium_discount=quote.price - reference if percent is not None else None,
                premium_discount_percent=percent,
            ))

        return rows

    def clear_cache(self, code: Optional[str] = None):
        """
        清除缓存

        Args:
            code: 只清除该基金的净值缓存；None表示清除全部
        """
        if code is None:
            self._spot_cache.clear()
            self._spot_cache_time.clear()
            self._nav_cache.clear()
            self._nav_cache_time.clear()
        else:
            self._nav_cache.pop(code, None)
            self._nav_cache_time.pop(code, None)
