"""
确认净值查询

交易表单中 (基金, 日期, 是否15:00后) 任一项变化都会重新查询确认净值。
新的查询会取消尚未完成的旧查询，旧查询的结果不会被交付，
避免按错误的日期确认交易。
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Union

from ..models.fund import ReferenceValue
from .calculations import settlement_query_date

logger = logging.getLogger(__name__)

NetValueLookup = Callable[
    [str, str],
    Union[Optional[ReferenceValue], Awaitable[Optional[ReferenceValue]]]
]
ResolutionKey = Tuple[str, str, bool]

DEFAULT_DEBOUNCE = 0.5


@dataclass(frozen=True)
class Resolution:
    """一次净值查询的结果"""
    fund_code: str
    date: str                    # 用户填写的交易日期
    is_after_3pm: bool
    query_date: str              # 实际查询的日期
    reference: Optional[ReferenceValue]  # None 表示净值尚未公布

    @property
    def is_resolved(self) -> bool:
        return self.reference is not None

    @property
    def status_text(self) -> str:
        return '净值已确认' if self.is_resolved else '等待净值更新'


class SettlementResolver:
    """
    确认净值查询器

    - resolve(): 直接查询一次，查询异常按"净值尚未公布"处理
    - request(): 防抖查询，取消进行中的旧查询，只交付最新一次的结果
    - close(): 表单关闭时调用，放弃进行中的查询
    """

    def __init__(self, lookup: NetValueLookup, debounce: float = DEFAULT_DEBOUNCE):
        """
        初始化查询器

        Args:
            lookup: 净值查询函数 (基金代码, 日期) -> ReferenceValue | None，可以是同步或异步函数
            debounce: 防抖延迟（秒）
        """
        self.lookup = lookup
        self.debounce = debounce
        self.latest: Optional[Resolution] = None
        self._task: Optional[asyncio.Task] = None
        self._key: Optional[ResolutionKey] = None
        self._closed = False

    def _is_async_lookup(self) -> bool:
        lookup = self.lookup
        return (inspect.iscoroutinefunction(lookup)
                or inspect.iscoroutinefunction(getattr(type(lookup), '__call__', None)))

    async def _call_lookup(self, fund_code: str, query_date: str) -> Optional[ReferenceValue]:
        if self._is_async_lookup():
            result = self.lookup(fund_code, query_date)
        else:
            # 同步的数据源调用放到线程中执行，不阻塞事件循环
            result = await asyncio.to_thread(self.lookup, fund_code, query_date)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def resolve(self, fund_code: str, date: str, is_after_3pm: bool) -> Resolution:
        """
        查询交易对应的确认净值

        Args:
            fund_code: 基金代码
            date: 交易日期
            is_after_3pm: 是否15:00后提交

        Returns:
            查询结果，reference为None表示净值尚未公布
        """
        query_date = settlement_query_date(date, is_after_3pm)

        try:
            reference = await self._call_lookup(fund_code, query_date)
            if reference is not None and not reference.is_valid:
                reference = None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"查询确认净值失败 {fund_code} {query_date}: {e}，按待确认处理")
            reference = None

        return Resolution(
            fund_code=fund_code,
            date=date,
            is_after_3pm=is_after_3pm,
            query_date=query_date,
            reference=reference,
        )

    def request(
        self,
        fund_code: str,
        date: str,
        is_after_3pm: bool,
        on_result: Optional[Callable[[Resolution], None]] = None
    ) -> asyncio.Task:
        """
        发起防抖查询，取消尚未完成的旧查询

        必须在事件循环中调用。

        Args:
            fund_code: 基金代码
            date: 交易日期
            is_after_3pm: 是否15:00后提交
            on_result: 结果回调，只在结果仍属于最新查询时调用

        Returns:
            查询任务，结果为 Resolution；被取代或放弃时结果为None
        """
        if self._closed:
            raise RuntimeError("查询器已关闭")

        self.cancel()
        key = (fund_code, date, is_after_3pm)
        self._key = key
        self._task = asyncio.ensure_future(self._debounced(key, on_result))
        return self._task

    async def _debounced(
        self,
        key: ResolutionKey,
        on_result: Optional[Callable[[Resolution], None]]
    ) -> Optional[Resolution]:
        await asyncio.sleep(self.debounce)
        resolution = await self.resolve(*key)

        if self._closed or key != self._key:
            logger.debug(f"丢弃过期的净值查询结果: {key}")
            return None

        self.latest = resolution
        if on_result is not None:
            on_result(resolution)
        return resolution

    @property
    def pending(self) -> bool:
        """是否有进行中的查询"""
        return self._task is not None and not self._task.done()

    def cancel(self):
        """取消进行中的查询"""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def close(self):
        """关闭查询器，进行中的查询结果将被丢弃"""
        self._closed = True
        self.cancel()
        self.latest = None
