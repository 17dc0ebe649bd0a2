"""
交易账本测试
"""

import pytest
from lof_arbitrage.ledger import (
    InsufficientShareError,
    NetValueUnavailable,
    TradeLedger,
    TradeValidationError,
)
from lof_arbitrage.ledger.calculations import (
    available_share,
    calc_buy_share,
    calc_sell,
    default_after_cutoff,
    settlement_query_date,
)
from lof_arbitrage.models.fund import ReferenceValue
from lof_arbitrage.models.trade import FeeMode, Holding, PendingTrade, TradeType
from lof_arbitrage.storage import MemoryStore


class FakeNavSource:
    """按 (代码, 日期) 返回净值的假数据源"""

    def __init__(self, navs=None):
        self.navs = dict(navs or {})
        self.calls = []

    def __call__(self, code, date):
        self.calls.append((code, date))
        return self.navs.get((code, date))


def _failing_lookup(code, date):
    raise ConnectionError("network down")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def source():
    return FakeNavSource()


@pytest.fixture
def ledger(store, source):
    return TradeLedger(store, lookup=source)


class TestCalculations:
    """加减仓计算测试"""

    def test_settlement_query_date(self):
        """测试15:00后顺延一个自然日"""
        assert settlement_query_date('2024-05-10', True) == '2024-05-11'
        assert settlement_query_date('2024-05-10', False) == '2024-05-10'
        assert settlement_query_date('2024-12-31', True) == '2025-01-01'

        with pytest.raises(ValueError):
            settlement_query_date('not-a-date', False)

    def test_default_after_cutoff(self):
        """测试默认交易时段"""
        from datetime import datetime
        assert default_after_cutoff(datetime(2024, 5, 10, 14, 59)) is False
        assert default_after_cutoff(datetime(2024, 5, 10, 15, 0)) is True

    def test_calc_buy_share(self):
        """测试买入份额：金额含申购费"""
        assert calc_buy_share(1000, 0, 2.0) == pytest.approx(500)
        assert calc_buy_share(1015, 1.5, 1.0) == pytest.approx(1000)
        assert calc_buy_share(1000, 0, 0) is None

    def test_calc_sell(self):
        """测试卖出到账金额"""
        estimate = calc_sell(100, 2.0, FeeMode.RATE, 0.5)
        assert estimate.sell_amount == pytest.approx(200)
        assert estimate.fee == pytest.approx(1)
        assert estimate.estimated_return == pytest.approx(199)

        estimate = calc_sell(100, 2.0, 'amount', 3)
        assert estimate.fee == 3
        assert estimate.estimated_return == pytest.approx(197)

    def test_available_share(self):
        """测试可卖份额扣除待确认卖出"""
        holding = Holding('161725', 100)
        pending = [
            PendingTrade('161725', TradeType.SELL, '2024-05-10', False, share=40),
            PendingTrade('161725', TradeType.BUY, '2024-05-10', False, amount=1000),
            PendingTrade('510300', TradeType.SELL, '2024-05-10', False, share=30),
        ]
        assert available_share(holding, pending) == pytest.approx(60)
        assert available_share(None, pending) == 0

        pending.append(PendingTrade('161725', TradeType.SELL, '2024-05-10', False, share=80))
        assert available_share(holding, pending) == 0


class TestSubmit:
    """提交加减仓测试"""

    def test_buy_finalized(self, ledger, source):
        """测试净值已公布时直接确认"""
        source.navs[('161725', '2024-05-10')] = ReferenceValue(1.25, '2024-05-10')

        result = ledger.submit_buy('161725', 1000, '2024-05-10', fee_rate=0)

        assert result.is_finalized
        assert result.trade.share == pytest.approx(800)
        assert result.trade.price == 1.25
        assert ledger.get_holding('161725').share == pytest.approx(800)
        assert len(ledger.history()) == 1
        assert ledger.pending() == []

    def test_after_3pm_queries_next_day(self, ledger, source):
        """测试15:00后提交按下一自然日查询，交易日期使用实际净值日期"""
        source.navs[('161725', '2024-05-11')] = ReferenceValue(1.0, '2024-05-13')

        result = ledger.submit_buy('161725', 500, '2024-05-10', is_after_3pm=True)

        assert source.calls == [('161725', '2024-05-11')]
        assert result.trade.date == '2024-05-13'

    def test_buy_pending(self, ledger):
        """测试净值未公布时加入待确认队列，持仓不变"""
        result = ledger.submit_buy('161725', 1000, '2024-05-10', fee_rate=1.5)

        assert not result.is_finalized
        assert result.pending.fee_rate == 1.5
        assert ledger.get_holding('161725') is None
        assert len(ledger.pending('161725')) == 1

    def test_lookup_failure_goes_pending(self, store):
        """测试净值查询异常按待确认处理"""
        ledger = TradeLedger(store, lookup=_failing_lookup)

        result = ledger.submit_buy('161725', 1000, '2024-05-10')

        assert result.status == 'pending'
        assert len(ledger.pending()) == 1

    def test_sell_respects_pending(self, ledger, source):
        """测试待确认卖出占用份额，超卖被拒绝"""
        source.navs[('161725', '2024-05-10')] = ReferenceValue(1.0, '2024-05-10')
        ledger.submit_buy('161725', 100, '2024-05-10')

        result = ledger.submit_sell('161725', 40, '2024-05-13')
        assert result.status == 'pending'
        assert ledger.available_share('161725') == pytest.approx(60)

        with pytest.raises(InsufficientShareError):
            ledger.submit_sell('161725', 70, '2024-05-13')

        assert len(ledger.pending()) == 1
        assert ledger.get_holding('161725').share == pytest.approx(100)

    def test_sell_finalized(self, ledger, source):
        """测试卖出确认后扣减持仓，金额为预计到账"""
        source.navs[('161725', '2024-05-10')] = ReferenceValue(1.0, '2024-05-10')
        source.navs[('161725', '2024-05-13')] = ReferenceValue(1.2, '2024-05-13')
        ledger.submit_buy('161725', 100, '2024-05-10')

        result = ledger.submit_sell('161725', 50, '2024-05-13', fee_mode='rate', fee_value=0.5)

        assert result.is_finalized
        assert result.trade.type == TradeType.SELL
        assert result.trade.amount == pytest.approx(60 * 0.995)
        assert ledger.get_holding('161725').share == pytest.approx(50)

    def test_explicit_reference_skips_lookup(self, ledger, source):
        """测试传入已查询的净值时不再查询"""
        result = ledger.submit_buy(
            '161725', 100, '2024-05-10', reference=ReferenceValue(2.0, '2024-05-10')
        )
        assert result.trade.share == pytest.approx(50)
        assert source.calls == []

    def test_validation(self, ledger):
        """测试参数校验"""
        with pytest.raises(TradeValidationError):
            ledger.submit_buy('161725', 0, '2024-05-10')
        with pytest.raises(TradeValidationError):
            ledger.submit_buy('161725', 100, 'bad-date')
        with pytest.raises(TradeValidationError):
            ledger.submit_sell('161725', 10, '2024-05-10', fee_mode='percent')
        with pytest.raises(ValueError):
            ledger.submit_sell('161725', -1, '2024-05-10')


class TestPendingQueue:
    """待确认队列测试"""

    def test_process_pending(self, ledger, source):
        """测试净值公布后确认待确认交易"""
        ledger.submit_buy('161725', 1000, '2024-05-10')
        assert ledger.process_pending() == []

        source.navs[('161725', '2024-05-10')] = ReferenceValue(2.0, '2024-05-10')
        finalized = ledger.process_pending()

        assert len(finalized) == 1
        assert finalized[0].share == pytest.approx(500)
        assert ledger.pending() == []
        assert ledger.get_holding('161725').share == pytest.approx(500)

    def test_process_pending_by_nav_date(self, ledger, source):
        """测试先确认较早净值日期的买入，后面的卖出才有足够份额"""
        ledger.submit_buy('161725', 100, '2024-05-10')

        # 卖出需要等买入确认后才有份额，直接构造队列
        sell = PendingTrade('161725', TradeType.SELL, '2024-05-13', False, share=50)
        ledger._pending.append(sell)

        source.navs[('161725', '2024-05-10')] = ReferenceValue(1.0, '2024-05-10')
        source.navs[('161725', '2024-05-13')] = ReferenceValue(1.1, '2024-05-13')

        finalized = ledger.process_pending()

        assert [t.type for t in finalized] == [TradeType.BUY, TradeType.SELL]
        assert ledger.get_holding('161725').share == pytest.approx(50)

    def test_revoke_pending(self, ledger):
        """测试撤销待确认交易不影响持仓"""
        result = ledger.submit_buy('161725', 1000, '2024-05-10')

        assert ledger.revoke_pending(result.pending.id)
        assert ledger.pending() == []
        assert ledger.get_holding('161725') is None
        assert not ledger.revoke_pending(result.pending.id)

    def test_persisted(self, store, source):
        """测试待确认队列持久化"""
        ledger = TradeLedger(store, lookup=source)
        pending = ledger.submit_buy('161725', 1000, '2024-05-10').pending

        saved = store.get('pendingTrades')
        assert saved[0]['fundCode'] == '161725'
        assert saved[0]['isAfter3pm'] is False

        reloaded = TradeLedger(store, lookup=source)
        assert reloaded.pending()[0].id == pending.id


class TestHistory:
    """交易记录测试"""

    def test_delete_keeps_holding(self, ledger, source):
        """测试删除交易记录不回滚持仓"""
        source.navs[('161725', '2024-05-10')] = ReferenceValue(1.0, '2024-05-10')
        trade = ledger.submit_buy('161725', 100, '2024-05-10').trade

        assert ledger.delete_trade(trade.id)
        assert ledger.history() == []
        assert ledger.get_holding('161725').share == pytest.approx(100)
        assert not ledger.delete_trade(trade.id)

    def test_history_sorted(self, ledger):
        """测试按日期倒序"""
        ledger.submit_buy('161725', 100, '2024-05-08', reference=ReferenceValue(1.0, '2024-05-08'))
        ledger.submit_buy('161725', 100, '2024-05-10', reference=ReferenceValue(1.0, '2024-05-10'))
        ledger.submit_buy('510300', 100, '2024-05-09', reference=ReferenceValue(1.0, '2024-05-09'))

        assert [t.date for t in ledger.history()] == ['2024-05-10', '2024-05-09', '2024-05-08']
        assert len(ledger.history('510300')) == 1

    def test_add_history(self, ledger, source):
        """测试补录历史交易只写入记录，不修改持仓"""
        source.navs[('161725', '2024-05-11')] = ReferenceValue(1.25, '2024-05-13')

        trade = ledger.add_history('161725', 'buy', '2024-05-11', 500)

        assert trade.date == '2024-05-13'
        assert trade.share == pytest.approx(400)
        assert ledger.get_holding('161725') is None
        assert len(ledger.history()) == 1

    def test_add_history_without_nav(self, ledger):
        """测试找不到净值时补录失败"""
        with pytest.raises(NetValueUnavailable):
            ledger.add_history('161725', 'buy', '2024-05-11', 500)
