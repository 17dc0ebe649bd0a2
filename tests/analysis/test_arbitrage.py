"""
折溢价套利计算测试
"""

import pytest
from lof_arbitrage.analysis.arbitrage import (
    INCOMPLETE_PARAMS,
    calculate_arbitrage_profit,
    calculate_discount_arbitrage,
    calculate_fees,
    calculate_premium_arbitrage,
    calculate_premium_discount,
    get_arbitrage_advice,
    is_arbitrage_profitable,
    profitability_threshold,
)
from lof_arbitrage.models.fund import (
    ArbitrageError,
    ArbitrageResult,
    ArbitrageType,
    FundQuote,
    FundType,
    PremiumDiscount,
)


class TestPremiumDiscount:
    """折溢价率计算测试"""

    def test_premium(self):
        """测试溢价"""
        assert calculate_premium_discount(110, 100) == pytest.approx(10.0)

    def test_discount(self):
        """测试折价"""
        assert calculate_premium_discount(0.95, 1.0) == pytest.approx(-5.0)

    def test_missing_data_returns_none(self):
        """测试数据缺失返回None而不是0"""
        assert calculate_premium_discount(None, 1.0) is None
        assert calculate_premium_discount(1.0, None) is None
        assert calculate_premium_discount(1.0, 0) is None
        assert calculate_premium_discount(1.0, -1.0) is None

    def test_premium_discount_model(self):
        """测试PremiumDiscount构建"""
        pd_data = PremiumDiscount.compute('510300', 4.04, 4.0)
        assert pd_data.premium_discount_percent == pytest.approx(1.0)
        assert pd_data.direction == ArbitrageType.PREMIUM
        assert pd_data.direction_label == '溢价'

        assert PremiumDiscount.compute('510300', 4.04, None) is None


class TestPremiumArbitrage:
    """溢价套利测算测试"""

    def test_etf_example(self):
        """测试ETF溢价套利：申购费为0，佣金按最低5元收取"""
        result = calculate_premium_arbitrage(
            amount=10000, reference_value=2.0, sell_price=2.05, fund_type=FundType.ETF
        )

        assert isinstance(result, ArbitrageResult)
        assert result.strategy == ArbitrageType.PREMIUM
        assert result.shares == pytest.approx(5000)
        assert result.sell_amount == pytest.approx(10250)
        assert result.commission == pytest.approx(5)
        assert result.net_profit == pytest.approx(245)
        assert result.profit_percent == pytest.approx(2.45)

    def test_total_fees_is_sum_of_details(self):
        """测试总费用 = 申购费 + 佣金"""
        result = calculate_premium_arbitrage(
            amount=10000, reference_value=1.0, sell_price=1.05, fund_type='LOF'
        )

        assert result.subscription_fee == pytest.approx(120)
        assert result.commission == pytest.approx(5)
        assert result.total_fees == pytest.approx(result.subscription_fee + result.commission)
        assert result.net_profit == pytest.approx(375)
        assert set(result.fee_details) == {'subscription', 'commission'}
        assert result.fee_details['subscription'].rate == pytest.approx(1.2)

    def test_discount_fee(self):
        """测试优惠申购费率"""
        result = calculate_premium_arbitrage(
            amount=10000, reference_value=1.0, sell_price=1.05, use_discount_fee=True
        )
        assert result.subscription_fee == pytest.approx(10)
        assert result.net_profit == pytest.approx(485)

    def test_explicit_shares(self):
        """测试指定申购份额"""
        result = calculate_premium_arbitrage(
            amount=10000, reference_value=1.0, sell_price=1.05, shares=9000
        )
        assert result.shares == 9000
        assert result.sell_amount == pytest.approx(9450)

    def test_incomplete_params(self):
        """测试参数不完整返回错误对象"""
        result = calculate_premium_arbitrage(amount=None, reference_value=1.0, sell_price=1.05)
        assert isinstance(result, ArbitrageError)
        assert result.error == INCOMPLETE_PARAMS

        result = calculate_premium_arbitrage(amount=10000, reference_value=0, sell_price=1.05)
        assert result.error == INCOMPLETE_PARAMS


class TestDiscountArbitrage:
    """折价套利测算测试"""

    def test_lof_discount(self):
        """测试LOF折价套利：佣金先从投入金额中扣除"""
        result = calculate_discount_arbitrage(amount=10000, buy_price=0.95, nav=1.0)

        shares = (10000 - 5) / 0.95
        redemption_fee = shares * 1.0 * 0.005

        assert result.strategy == ArbitrageType.DISCOUNT
        assert result.buy_commission == pytest.approx(5)
        assert result.shares == pytest.approx(shares)
        assert result.redemption_fee == pytest.approx(redemption_fee)
        assert result.total_fees == pytest.approx(5 + redemption_fee)
        assert result.net_profit == pytest.approx(shares - 10000 - 5 - redemption_fee)
        assert set(result.fee_details) == {'commission', 'redemption'}

    def test_incomplete_params(self):
        """测试参数不完整"""
        result = calculate_discount_arbitrage(amount=10000, buy_price=None, nav=1.0)
        assert result.error == INCOMPLETE_PARAMS


class TestArbitrageDispatch:
    """统一入口测试"""

    def test_dispatch_premium(self):
        """测试按类型分发"""
        result = calculate_arbitrage_profit(
            'premium', amount=10000, reference_value=2.0, sell_price=2.05, fund_type='ETF'
        )
        assert result.net_profit == pytest.approx(245)

        result = calculate_arbitrage_profit(
            ArbitrageType.DISCOUNT, amount=10000, buy_price=0.95, nav=1.0
        )
        assert result.strategy == ArbitrageType.DISCOUNT

    def test_unknown_type(self):
        """测试未知套利类型"""
        result = calculate_arbitrage_profit('swap', amount=10000)
        assert isinstance(result, ArbitrageError)
        assert result.error == '未知的套利类型'


class TestFeesAndThreshold:
    """手续费与成本线测试"""

    def test_calculate_fees(self):
        """测试单项手续费"""
        fee = calculate_fees(10000, 'subscription', FundType.LOF)
        assert fee.rate == pytest.approx(1.2)
        assert fee.amount == pytest.approx(120)

        fee = calculate_fees(100000, 'commission', FundType.ETF)
        assert fee.amount == pytest.approx(30)

        fee = calculate_fees(1000, 'commission', FundType.ETF)
        assert fee.amount == pytest.approx(5)

        fee = calculate_fees(1000, 'unknown')
        assert fee.rate == 0 and fee.amount == 0

    def test_threshold(self):
        """测试成本线 = (申购费 + 赎回费 + 2×佣金)×100 + 0.3"""
        assert profitability_threshold(FundType.ETF) == pytest.approx(0.36)
        assert profitability_threshold(FundType.LOF) == pytest.approx(2.06)

    def test_is_profitable(self):
        """测试可行性判断"""
        verdict = is_arbitrage_profitable(0.37, FundType.ETF)
        assert verdict.profitable
        assert verdict.strategy == ArbitrageType.PREMIUM
        assert '超过成本线' in verdict.message

        verdict = is_arbitrage_profitable(-0.37, FundType.ETF)
        assert verdict.profitable
        assert verdict.strategy == ArbitrageType.DISCOUNT

        verdict = is_arbitrage_profitable(0.35, FundType.ETF)
        assert not verdict.profitable
        assert verdict.strategy is None
        assert '不足以覆盖交易成本' in verdict.message


class TestArbitrageAdvice:
    """套利建议测试"""

    def test_missing_data(self):
        """测试数据不完整"""
        advice = get_arbitrage_advice(None, 1.0)
        assert not advice.has_opportunity
        assert advice.advice == '数据不完整，无法判断'

        quote = FundQuote(code='161725', name='招商中证白酒A', price=1.0)
        advice = get_arbitrage_advice(quote, None)
        assert not advice.has_opportunity

    def test_risk_levels(self):
        """测试风险等级"""
        quote = FundQuote(code='161725', name='招商中证白酒A', price=1.06)
        advice = get_arbitrage_advice(quote, 1.0, FundType.LOF)
        assert advice.has_opportunity
        assert advice.arbitrage_type == ArbitrageType.PREMIUM
        assert advice.risk_level == 'high'

        quote = FundQuote(code='161725', name='招商中证白酒A', price=0.96)
        advice = get_arbitrage_advice(quote, 1.0, FundType.LOF)
        assert advice.arbitrage_type == ArbitrageType.DISCOUNT
        assert advice.risk_level == 'medium'

        quote = FundQuote(code='510300', name='沪深300ETF', price=1.001)
        advice = get_arbitrage_advice(quote, 1.0, FundType.ETF)
        assert not advice.has_opportunity
        assert advice.risk_level == 'low'
