"""
命令行测试（不访问网络）
"""

import pytest
from click.testing import CliRunner
from lof_arbitrage.cli import main as cli_module
from lof_arbitrage.cli.main import cli
from lof_arbitrage.config import AppConfig, MonitorConfig
from lof_arbitrage.models.fund import FundQuote, ReferenceValue
from lof_arbitrage.storage import JsonFileStore


@pytest.fixture
def config_file(tmp_path):
    config = AppConfig.default()
    config.storage.store_path = str(tmp_path / 'store.json')
    config.logging.file_path = str(tmp_path / 'monitor.log')
    path = tmp_path / 'config.toml'
    config.save(path)
    return path


@pytest.fixture
def runner():
    return CliRunner()


def _invoke(runner, config_file, *args):
    return runner.invoke(cli, ['--config', str(config_file), *args])


class TestBasicCommands:
    """基础命令测试"""

    def test_list(self, runner, config_file):
        """测试列出基金"""
        result = _invoke(runner, config_file, 'list', '--type', 'ETF')
        assert result.exit_code == 0
        assert '510300' in result.output
        assert '161725' not in result.output

    def test_calc_premium(self, runner, config_file):
        """测试溢价套利测算"""
        result = _invoke(
            runner, config_file,
            'calc', 'premium', '-a', '10000', '-n', '2.0', '-p', '2.05', '-t', 'ETF',
        )
        assert result.exit_code == 0
        assert '245.00' in result.output

    def test_calc_discount(self, runner, config_file):
        """测试折价套利测算"""
        result = _invoke(runner, config_file, 'calc', 'discount', '-a', '10000', '-p', '0.95', '-n', '1.0')
        assert result.exit_code == 0
        assert '赎回费' in result.output

    def test_check(self, runner, config_file, monkeypatch):
        """测试按实时数据检查套利"""
        monkeypatch.setattr(
            cli_module.data_service, 'fetch_quote',
            lambda code, fund_type: FundQuote(code=code, name='沪深300ETF', price=2.05),
        )
        monkeypatch.setattr(cli_module.data_service, 'fetch_reference_value', lambda fund: 2.0)

        result = _invoke(runner, config_file, 'check', '510300')
        assert result.exit_code == 0
        assert '超过成本线' in result.output
        assert '245.00' in result.output

    def test_check_missing_data(self, runner, config_file, monkeypatch):
        """测试行情缺失"""
        monkeypatch.setattr(cli_module.data_service, 'fetch_quote', lambda code, fund_type: None)

        result = _invoke(runner, config_file, 'check', '510300')
        assert '数据不完整' in result.output


class TestMonitorCommands:
    """监控配置命令测试"""

    def test_add_and_status(self, runner, config_file, tmp_path):
        """测试添加监控基金并开启"""
        assert _invoke(runner, config_file, 'monitor', 'add', '161725', '510300').exit_code == 0
        assert _invoke(runner, config_file, 'monitor', 'enable').exit_code == 0
        assert _invoke(runner, config_file, 'monitor', 'set', '-i', '60', '-th', '1.5').exit_code == 0

        config = MonitorConfig.load(JsonFileStore(tmp_path / 'store.json'))
        assert config.enabled is True
        assert config.interval == 60000
        assert config.threshold == 1.5
        assert config.monitored_codes == ['161725', '510300']

        result = _invoke(runner, config_file, 'monitor', 'status')
        assert '161725, 510300' in result.output

    def test_add_unknown_code(self, runner, config_file):
        """测试添加未收录基金"""
        result = _invoke(runner, config_file, 'monitor', 'add', '000000')
        assert result.exit_code != 0
        assert '未收录的基金' in result.output

    def test_interval_too_short(self, runner, config_file):
        """测试轮询间隔过短"""
        result = _invoke(runner, config_file, 'monitor', 'set', '-i', '1')
        assert result.exit_code != 0


class TestTradeCommands:
    """加减仓命令测试"""

    @pytest.fixture(autouse=True)
    def fake_nav(self, monkeypatch):
        navs = {('161725', '2024-05-10'): ReferenceValue(1.25, '2024-05-10')}
        monkeypatch.setattr(
            cli_module.data_service,
            'fetch_smart_fund_net_value',
            lambda code, date: navs.get((code, date)),
        )
        return navs

    def test_buy_then_holdings(self, runner, config_file):
        """测试净值已公布的加仓"""
        result = _invoke(
            runner, config_file,
            'trade', 'buy', '161725', '-a', '1000', '-d', '2024-05-10', '--before-3pm', '-y',
        )
        assert result.exit_code == 0
        assert '买入已确认' in result.output

        result = _invoke(runner, config_file, 'holdings')
        assert '800.00' in result.output

    def test_pending_then_settle(self, runner, config_file, fake_nav):
        """测试净值未公布时加入队列，公布后确认"""
        result = _invoke(
            runner, config_file,
            'trade', 'buy', '161725', '-a', '1000', '-d', '2024-05-10', '--after-3pm', '-y',
        )
        assert '待处理队列' in result.output

        result = _invoke(runner, config_file, 'trade', 'pending')
        assert '161725' in result.output

        fake_nav[('161725', '2024-05-11')] = ReferenceValue(1.0, '2024-05-13')
        result = _invoke(runner, config_file, 'trade', 'settle')
        assert '本次确认 1 笔' in result.output

        result = _invoke(runner, config_file, 'trade', 'history')
        assert '2024-05-13' in result.output

    def test_oversell_rejected(self, runner, config_file):
        """测试超出可卖份额"""
        _invoke(runner, config_file, 'trade', 'buy', '161725', '-a', '100', '-d', '2024-05-10', '--before-3pm', '-y')

        result = _invoke(
            runner, config_file,
            'trade', 'sell', '161725', '-s', '500', '-d', '2024-05-10', '--before-3pm', '-y',
        )
        assert '可卖份额不足' in result.output
