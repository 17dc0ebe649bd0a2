"""命令行主程序"""

import asyncio
import time
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress
from rich.table import Table

from .. import __version__
from ..analysis.arbitrage import (
    calculate_discount_arbitrage,
    calculate_premium_arbitrage,
    get_arbitrage_advice,
    profitability_threshold,
)
from ..analysis.market_overview import filter_and_sort, summarize
from ..config.app_config import AppConfig, setup_logging
from ..config.monitor_config import MonitorConfig
from ..data.catalog import find_fund, list_funds
from ..data.service import FundDataService
from ..ledger.calculations import available_share, calc_buy_share, calc_sell, default_after_cutoff
from ..ledger.resolver import SettlementResolver
from ..ledger.trade_ledger import LedgerError, TradeLedger
from ..models.fund import ArbitrageError
from ..notification.email_service import EmailAlertListener, EmailService
from ..notification.events import Notification, NotificationBus
from ..scheduler.arbitrage_monitor import ArbitrageMonitor
from ..storage.kv_store import JsonFileStore, StorageError
from ..utils.helpers import format_money, format_number, format_percentage, get_color_by_value

console = Console()
data_service = FundDataService()

FUND_TYPES = click.Choice(['LOF', 'ETF'], case_sensitive=False)


class AppContext:
    """命令共享的配置、存储和账本（按需创建）"""

    def __init__(self, config_path=None):
        self.config = AppConfig.from_file(Path(config_path) if config_path else None)
        self._store = None
        self._ledger = None

    @property
    def store(self) -> JsonFileStore:
        if self._store is None:
            self._store = JsonFileStore(self.config.storage.get_store_path())
        return self._store

    @property
    def ledger(self) -> TradeLedger:
        if self._ledger is None:
            self._ledger = TradeLedger(self.store, lookup=data_service.fetch_smart_fund_net_value)
        return self._ledger


pass_app = click.make_pass_decorator(AppContext)


def _require_fund(code):
    fund = find_fund(code)
    if fund is None:
        raise click.ClickException(f"未收录的基金: {code}")
    return fund


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', 'config_path', type=click.Path(), default=None, help='配置文件路径')
@click.pass_context
def cli(ctx, config_path):
    """
    LOF/ETF 套利助手

    提供折溢价监控、套利收益测算和加减仓记账功能。
    """
    ctx.obj = AppContext(config_path)


@cli.command('list')
@click.option('--type', '-t', 'fund_type', type=FUND_TYPES, default=None, help='基金类型')
def list_command(fund_type):
    """列出收录的LOF/ETF基金"""
    funds = list_funds(fund_type)

    table = Table(title="LOF/ETF 基金列表", show_header=True, header_style="bold magenta")
    table.add_column("代码", style="cyan")
    table.add_column("名称", style="white")
    table.add_column("类型", justify="center")
    table.add_column("成本线", justify="right")

    for fund in funds:
        table.add_row(
            fund.code,
            fund.name,
            fund.type.value,
            f"{profitability_threshold(fund.type):.2f}%",
        )

    console.print(table)
    console.print(f"\n共 {len(funds)} 只基金")


@cli.command()
@click.argument('code')
def quote(code):
    """查看基金实时行情与折溢价"""
    try:
        fund = _require_fund(code)

        with Progress() as progress:
            task = progress.add_task("[cyan]正在获取实时行情...", total=None)
            quote_data = data_service.fetch_quote(fund.code, fund.type)
            reference = data_service.fetch_reference_value(fund) if quote_data else None
            progress.update(task, completed=True)

        if not quote_data:
            console.print(f"[red]行情获取失败: {code}[/red]")
            return

        color = get_color_by_value(quote_data.change_pct)
        advice = get_arbitrage_advice(quote_data, reference, fund.type)
        pd_color = get_color_by_value(advice.premium_discount_percent)

        info = f"""
[bold]{fund.name}[/bold] ({fund.code}) {fund.type.value}

最新价: [{color}]{quote_data.price:.3f}[/{color}]
涨跌额: [{color}]{quote_data.change:+.3f}[/{color}]
涨跌幅: [{color}]{format_percentage(quote_data.change_pct)}[/{color}]

开盘价: {quote_data.open_price:.3f}
最高价: {quote_data.high:.3f}
最低价: {quote_data.low:.3f}
昨收价: {quote_data.pre_close:.3f}
成交额: {format_number(quote_data.amount)}

参考净值: {format_money(reference, 4)}
折溢价率: [{pd_color}]{format_percentage(advice.premium_discount_percent)}[/{pd_color}]
套利建议: {advice.advice}
        """

        console.print(Panel(info.strip(), title="实时行情", border_style=color))

    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]错误: {str(e)}[/red]")


@cli.command()
@click.argument('code')
@click.option('--amount', '-a', type=float, default=10000, help='测算金额')
@click.option('--discount-fee', is_flag=True, help='使用优惠申赎费率')
def check(code, amount, discount_fee):
    """按实时折溢价检查套利可行性并测算收益"""
    try:
        fund = _require_fund(code)

        with console.status("[cyan]正在获取实时数据...[/cyan]"):
            quote_data = data_service.fetch_quote(fund.code, fund.type)
            reference = data_service.fetch_reference_value(fund) if quote_data else None

        advice = get_arbitrage_advice(quote_data, reference, fund.type)
        color = get_color_by_value(advice.premium_discount_percent)

        console.print(f"\n[bold]{fund.name}[/bold] ({fund.code})")
        console.print(f"折溢价率: [{color}]{format_percentage(advice.premium_discount_percent)}[/{color}]  "
                      f"成本线: {profitability_threshold(fund.type):.2f}%")

        if advice.premium_discount_percent is None:
            console.print(f"[yellow]{advice.advice}[/yellow]")
            return

        risk = {'high': '[red]高[/red]', 'medium': '[yellow]中[/yellow]', 'low': '[green]低[/green]'}
        console.print(f"套利建议: {advice.advice}  风险: {risk[advice.risk_level]}")

        if advice.premium_discount_percent > 0:
            result = calculate_premium_arbitrage(
                amount=amount, reference_value=reference, sell_price=quote_data.price,
                fund_type=fund.type, use_discount_fee=discount_fee,
            )
            _display_arbitrage_result(result, "溢价套利测算（申购 -> 卖出）")
        else:
            result = calculate_discount_arbitrage(
                amount=amount, buy_price=quote_data.price, nav=reference,
                fund_type=fund.type, use_discount_fee=discount_fee,
            )
            _display_arbitrage_result(result, "折价套利测算（买入 -> 赎回）")

    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]错误: {str(e)}[/red]")


@cli.command()
@click.option('--type', '-t', 'fund_type', type=FUND_TYPES, default=None, help='基金类型')
@click.option('--threshold', '-th', type=float, default=None, help='只显示 |折溢价率| 不低于该值的基金(%)')
@click.option('--order', '-o', type=click.Choice(['desc', 'asc']), default='desc', help='排序方向')
@click.option('--refresh', is_flag=True, help='忽略缓存重新获取')
def premium(fund_type, threshold, order, refresh):
    """折溢价列表与市场统计"""
    try:
        if refresh:
            data_service.clear_cache()
        funds = list_funds(fund_type)

        with Progress() as progress:
            task = progress.add_task("[cyan]正在获取折溢价数据...", total=None)
            rows = data_service.fetch_batch_quotes(funds)
            progress.update(task, completed=True)

        stats = summarize(rows)
        rows = filter_and_sort(rows, threshold=threshold, order=order)

        table = Table(title="折溢价列表", show_header=True, header_style="bold magenta")
        table.add_column("代码", style="cyan")
        table.add_column("名称")
        table.add_column("类型", justify="center")
        table.add_column("现价", justify="right")
        table.add_column("参考净值", justify="right")
        table.add_column("折溢价率", justify="right")

        for row in rows:
            color = get_color_by_value(row.premium_discount_percent)
            table.add_row(
                row.fund.code,
                row.fund.name,
                row.fund.type.value,
                format_money(row.quote.price if row.quote else None, 3),
                format_money(row.reference_value, 4),
                f"[{color}]{format_percentage(row.premium_discount_percent)}[/{color}]",
            )

        console.print(table)

        avg_color = get_color_by_value(stats.average)
        console.print(
            f"\n有效数据 {stats.total} 只  溢价 {stats.premium_count} / 折价 {stats.discount_count}  "
            f"高溢价(>3%) {stats.high_premium} / 高折价(<-3%) {stats.high_discount}"
        )
        console.print(
            f"平均折溢价 [{avg_color}]{format_percentage(stats.average, 3)}[/{avg_color}]  "
            f"市场整体{stats.sentiment}  "
            f"最高溢价 {format_percentage(stats.max_premium)}  最大折价 {format_percentage(stats.max_discount)}"
        )

    except Exception as e:
        console.print(f"[red]错误: {str(e)}[/red]")


@cli.group()
def calc():
    """套利收益测算"""
    pass


def _display_arbitrage_result(result, title):
    if isinstance(result, ArbitrageError):
        console.print(f"[red]{result.error}[/red]")
        return

    names = {'subscription': '申购费', 'redemption': '赎回费', 'commission': '佣金'}
    color = get_color_by_value(result.net_profit)

    table = Table(title=title, show_header=False)
    table.add_column("项目", style="cyan")
    table.add_column("数值", justify="right")
    table.add_row("投入金额", format_money(result.amount))
    table.add_row("份额", format_money(result.shares))
    for key, detail in result.fee_details.items():
        table.add_row(f"{names.get(key, key)} ({detail.rate:.3f}%)", format_money(detail.amount))
    table.add_row("总费用", format_money(result.total_fees))
    table.add_row("净收益", f"[{color}]{format_money(result.net_profit)}[/{color}]")
    table.add_row("收益率", f"[{color}]{format_percentage(result.profit_percent)}[/{color}]")
    console.print(table)


@calc.command('premium')
@click.option('--amount', '-a', type=float, required=True, help='申购金额')
@click.option('--nav', '-n', type=float, required=True, help='申购净值 (IOPV/NAV)')
@click.option('--sell-price', '-p', type=float, required=True, help='场内卖出价')
@click.option('--shares', '-s', type=float, default=None, help='申购份额（默认按金额/净值计算）')
@click.option('--type', '-t', 'fund_type', type=FUND_TYPES, default='LOF', help='基金类型')
@click.option('--discount-fee', is_flag=True, help='使用优惠申购费率')
def calc_premium(amount, nav, sell_price, shares, fund_type, discount_fee):
    """溢价套利：场外申购 -> 场内卖出"""
    result = calculate_premium_arbitrage(
        amount=amount,
        reference_value=nav,
        sell_price=sell_price,
        shares=shares,
        fund_type=fund_type,
        use_discount_fee=discount_fee,
    )
    _display_arbitrage_result(result, "溢价套利测算")


@calc.command('discount')
@click.option('--amount', '-a', type=float, required=True, help='买入金额')
@click.option('--buy-price', '-p', type=float, required=True, help='场内买入价')
@click.option('--nav', '-n', type=float, required=True, help='赎回净值')
@click.option('--type', '-t', 'fund_type', type=FUND_TYPES, default='LOF', help='基金类型')
@click.option('--discount-fee', is_flag=True, help='使用优惠赎回费率')
def calc_discount(amount, buy_price, nav, fund_type, discount_fee):
    """折价套利：场内买入 -> 场外赎回"""
    result = calculate_discount_arbitrage(
        amount=amount,
        buy_price=buy_price,
        nav=nav,
        fund_type=fund_type,
        use_discount_fee=discount_fee,
    )
    _display_arbitrage_result(result, "折价套利测算")


# ----------------------------------------------------------------------
# 监控


@cli.group()
def monitor():
    """折溢价定时监控"""
    pass


def _print_monitor_config(config: MonitorConfig):
    state = "[green]已开启[/green]" if config.enabled else "[red]已关闭[/red]"
    console.print(f"监控状态: {state}")
    console.print(f"轮询间隔: {config.interval_seconds:g} 秒")
    console.print(f"提醒阈值: {config.threshold}%")
    codes = ', '.join(config.monitored_codes) or '（空）'
    console.print(f"监控基金: {codes}")


@monitor.command('run')
@pass_app
def monitor_run(app):
    """前台运行监控（Ctrl+C 停止）"""
    setup_logging(app.config.logging)

    config = MonitorConfig.load(app.store)
    errors = config.validate()
    if not config.enabled:
        errors.append("监控未开启，请先执行 'lof monitor enable'")
    if errors:
        console.print("[red]配置错误:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        return

    bus = NotificationBus()

    def _print_notification(notification: Notification):
        console.print(Panel(notification.body, title=notification.title, border_style="yellow"))

    bus.subscribe(_print_notification)

    if app.config.email.enabled:
        try:
            bus.subscribe(EmailAlertListener(EmailService(app.config.email)))
        except ValueError as e:
            console.print(f"[yellow]邮件提醒未启用: {e}[/yellow]")

    runner = ArbitrageMonitor(
        config,
        data_service,
        bus,
        store=app.store,
        market_hours_only=app.config.monitor.market_hours_only,
        notification_duration=app.config.monitor.notification_duration,
        max_log_entries=app.config.monitor.max_log_entries,
    )

    if not runner.start():
        console.print("[red]✗ 监控启动失败[/red]")
        return

    console.print(f"[green]✓ 监控已启动[/green]，间隔 {config.interval_seconds:g} 秒")
    console.print("\n按 Ctrl+C 停止服务...")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        runner.stop()
        console.print("\n[yellow]监控已停止[/yellow]")


@monitor.command('status')
@pass_app
def monitor_status(app):
    """查看监控配置"""
    console.print("\n[bold cyan]套利监控配置[/bold cyan]\n")
    _print_monitor_config(MonitorConfig.load(app.store))


def _update_monitor_config(app, config: MonitorConfig):
    errors = [e for e in config.validate() if 'monitoredCodes' not in e]
    if errors:
        raise click.ClickException('; '.join(errors))
    if not config.save(app.store):
        raise click.ClickException("保存监控配置失败")
    _print_monitor_config(config)


@monitor.command('enable')
@pass_app
def monitor_enable(app):
    """开启监控"""
    _update_monitor_config(app, replace(MonitorConfig.load(app.store), enabled=True))


@monitor.command('disable')
@pass_app
def monitor_disable(app):
    """关闭监控"""
    _update_monitor_config(app, replace(MonitorConfig.load(app.store), enabled=False))


@monitor.command('add')
@click.argument('codes', nargs=-1, required=True)
@pass_app
def monitor_add(app, codes):
    """添加监控基金"""
    config = MonitorConfig.load(app.store)
    for code in codes:
        _require_fund(code)
        config = config.with_code(code)
    _update_monitor_config(app, config)


@monitor.command('remove')
@click.argument('codes', nargs=-1, required=True)
@pass_app
def monitor_remove(app, codes):
    """移除监控基金"""
    config = MonitorConfig.load(app.store)
    for code in codes:
        config = config.without_code(code)
    _update_monitor_config(app, config)


@monitor.command('set')
@click.option('--interval', '-i', type=int, default=None, help='轮询间隔（秒）')
@click.option('--threshold', '-th', type=float, default=None, help='提醒阈值(%)')
@pass_app
def monitor_set(app, interval, threshold):
    """修改轮询间隔和提醒阈值"""
    config = MonitorConfig.load(app.store)
    if interval is not None:
        config = replace(config, interval=interval * 1000)
    if threshold is not None:
        config = replace(config, threshold=threshold)
    _update_monitor_config(app, config)


@monitor.command('test-email')
@pass_app
def monitor_test_email(app):
    """发送测试邮件"""
    try:
        EmailService(app.config.email).send_test_email()
        console.print("[green]✓ 测试邮件已发送[/green]")
    except Exception as e:
        console.print(f"[red]✗ 测试邮件发送失败: {e}[/red]")


# ----------------------------------------------------------------------
# 交易记账


@cli.group()
def trade():
    """加减仓记账"""
    pass


def _default_date():
    return datetime.now().strftime('%Y-%m-%d')


def _resolve_reference(app, code, date, after_3pm):
    resolver = SettlementResolver(
        data_service.fetch_smart_fund_net_value,
        debounce=app.config.resolver.debounce_ms / 1000,
    )
    with console.status("[cyan]正在获取该日净值...[/cyan]"):
        resolution = asyncio.run(resolver.resolve(code, date, after_3pm))
    return resolution


def _after_3pm_default(app, after_3pm):
    if after_3pm is not None:
        return after_3pm
    return default_after_cutoff(cutoff_hour=app.config.resolver.cutoff_hour)


@trade.command('buy')
@click.argument('code')
@click.option('--amount', '-a', type=float, required=True, help='加仓金额（含申购费）')
@click.option('--fee-rate', '-f', type=float, default=0.0, help='买入费率(%)')
@click.option('--date', '-d', default=None, help='加仓日期 YYYY-MM-DD（默认今天）')
@click.option('--after-3pm/--before-3pm', default=None, help='交易时段（默认按当前时间判断）')
@click.option('--yes', '-y', is_flag=True, help='跳过确认')
@pass_app
def trade_buy(app, code, amount, fee_rate, date, after_3pm, yes):
    """加仓"""
    try:
        date = date or _default_date()
        after_3pm = _after_3pm_default(app, after_3pm)
        resolution = _resolve_reference(app, code, date, after_3pm)
        reference = resolution.reference

        console.print(f"买入金额: ¥{amount:.2f}  买入费率: {fee_rate:.2f}%")
        console.print(f"交易时段: {'15:00后' if after_3pm else '15:00前'}  查询日期: {resolution.query_date}")
        if reference:
            share = calc_buy_share(amount, fee_rate, reference.value)
            console.print(f"确认净值: ¥{reference.value:.4f} ({reference.date})  预估份额: {share:.2f} 份")
        else:
            console.print(f"[yellow]{resolution.status_text}，将加入待处理队列[/yellow]")

        if not yes and not click.confirm('确认买入?' if reference else '加入待处理队列?', default=True):
            return

        result = app.ledger.submit_buy(code, amount, date, after_3pm, fee_rate, reference=reference)
        if result.is_finalized:
            console.print(f"[green]✓ 买入已确认: {result.trade.share:.2f} 份[/green]")
        else:
            console.print(f"[yellow]已加入待处理队列 (ID: {result.pending.id})[/yellow]")

    except (LedgerError, StorageError, ValueError) as e:
        console.print(f"[red]错误: {str(e)}[/red]")


@trade.command('sell')
@click.argument('code')
@click.option('--share', '-s', type=float, default=None, help='卖出份额')
@click.option('--fraction', type=click.Choice(['1/4', '1/3', '1/2', 'all']), default=None,
              help='按可卖份额比例卖出')
@click.option('--fee-mode', type=click.Choice(['rate', 'amount']), default='rate', help='手续费方式')
@click.option('--fee-value', type=float, default=0.0, help='卖出费率(%)或固定手续费')
@click.option('--date', '-d', default=None, help='卖出日期 YYYY-MM-DD（默认今天）')
@click.option('--after-3pm/--before-3pm', default=None, help='交易时段（默认按当前时间判断）')
@click.option('--yes', '-y', is_flag=True, help='跳过确认')
@pass_app
def trade_sell(app, code, share, fraction, fee_mode, fee_value, date, after_3pm, yes):
    """减仓"""
    try:
        ledger = app.ledger
        holding = ledger.get_holding(code)
        available = available_share(holding, ledger.pending(code))
        frozen = (holding.share - available) if holding else 0.0

        if fraction:
            ratio = {'1/4': 0.25, '1/3': 1 / 3, '1/2': 0.5, 'all': 1.0}[fraction]
            share = round(available * ratio, 2)
        if not share:
            raise click.UsageError("请指定 --share 或 --fraction")

        date = date or _default_date()
        after_3pm = _after_3pm_default(app, after_3pm)

        console.print(
            f"当前持仓: {holding.share if holding else 0:.2f} 份  "
            f"冻结: {frozen:.2f} 份  最多可卖: {available:.2f} 份"
        )

        resolution = _resolve_reference(app, code, date, after_3pm)
        reference = resolution.reference
        if reference:
            estimate = calc_sell(share, reference.value, fee_mode, fee_value)
            console.print(
                f"确认净值: ¥{reference.value:.4f} ({reference.date})  卖出份额: {share:.2f}  "
                f"手续费: ¥{estimate.fee:.2f}  预计到账: ¥{estimate.estimated_return:.2f}"
            )
        else:
            console.print(f"[yellow]{resolution.status_text}，将加入待处理队列[/yellow]")

        if not yes and not click.confirm('确认卖出?' if reference else '加入待处理队列?', default=True):
            return

        result = ledger.submit_sell(code, share, date, after_3pm, fee_mode, fee_value, reference=reference)
        if result.is_finalized:
            console.print(f"[green]✓ 卖出已确认: 到账 ¥{result.trade.amount:.2f}[/green]")
        else:
            console.print(f"[yellow]已加入待处理队列 (ID: {result.pending.id})[/yellow]")

    except (LedgerError, StorageError, ValueError) as e:
        console.print(f"[red]错误: {str(e)}[/red]")


@trade.command('pending')
@click.argument('code', required=False)
@pass_app
def trade_pending(app, code):
    """查看待处理队列"""
    items = app.ledger.pending(code)
    if not items:
        console.print("[yellow]没有待处理交易[/yellow]")
        return

    table = Table(title="待交易队列", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("代码", style="cyan")
    table.add_column("方向")
    table.add_column("日期")
    table.add_column("份额/金额", justify="right")
    table.add_column("状态")

    for item in items:
        color = "red" if item.type.value == 'buy' else "green"
        table.add_row(
            item.id[:8],
            item.fund_code,
            f"[{color}]{item.type.label}[/{color}]",
            f"{item.date}{' (15:00后)' if item.is_after_3pm else ''}",
            f"{item.share} 份" if item.share else f"¥{item.amount}",
            "[yellow]等待净值更新...[/yellow]",
        )

    console.print(table)


@trade.command('history')
@click.argument('code', required=False)
@pass_app
def trade_history(app, code):
    """查看交易记录"""
    trades = app.ledger.history(code)
    if not trades:
        console.print("[yellow]暂无交易记录[/yellow]")
        return

    table = Table(title="交易记录", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("代码", style="cyan")
    table.add_column("方向")
    table.add_column("日期")
    table.add_column("净值", justify="right")
    table.add_column("份额", justify="right")
    table.add_column("金额", justify="right")

    for t in trades:
        color = "red" if t.type.value == 'buy' else "green"
        table.add_row(
            t.id[:8],
            t.fund_code,
            f"[{color}]{t.type.label}[/{color}]",
            t.date,
            f"{t.price:.4f}",
            f"{t.share:.2f}",
            f"{t.amount:.2f}",
        )

    console.print(table)


def _match_id(candidates, prefix):
    matched = [c for c in candidates if c.id.startswith(prefix)]
    if len(matched) != 1:
        raise click.ClickException(f"未找到唯一匹配的记录: {prefix}")
    return matched[0].id


@trade.command('revoke')
@click.argument('pending_id')
@pass_app
def trade_revoke(app, pending_id):
    """撤销待处理交易"""
    full_id = _match_id(app.ledger.pending(), pending_id)
    if app.ledger.revoke_pending(full_id):
        console.print("[green]✓ 已撤销[/green]")


@trade.command('delete')
@click.argument('trade_id')
@click.option('--yes', '-y', is_flag=True, help='跳过确认')
@pass_app
def trade_delete(app, trade_id, yes):
    """删除交易记录（不会恢复已变更的持仓）"""
    full_id = _match_id(app.ledger.history(), trade_id)
    if not yes and not click.confirm('确定要删除这条交易记录吗？注意：删除记录不会恢复已变更的持仓数据。'):
        return
    if app.ledger.delete_trade(full_id):
        console.print("[green]✓ 已删除[/green]")


@trade.command('settle')
@pass_app
def trade_settle(app):
    """尝试确认待处理交易"""
    with console.status("[cyan]正在查询净值...[/cyan]"):
        finalized = app.ledger.process_pending()

    for t in finalized:
        console.print(f"[green]✓ {t.fund_code} {t.type.label} {t.share:.2f} 份 @ {t.price:.4f} ({t.date})[/green]")
    remaining = len(app.ledger.pending())
    console.print(f"本次确认 {len(finalized)} 笔，剩余待处理 {remaining} 笔")


@trade.command('add-history')
@click.argument('code')
@click.option('--type', 'trade_type', type=click.Choice(['buy', 'sell']), required=True, help='交易类型')
@click.option('--amount', '-a', type=float, required=True, help='金额')
@click.option('--date', '-d', required=True, help='交易日期 YYYY-MM-DD')
@pass_app
def trade_add_history(app, code, trade_type, amount, date):
    """补录历史交易（不修改持仓）"""
    try:
        t = app.ledger.add_history(code, trade_type, date, amount)
        console.print(f"[green]✓ 已补录: {t.date} 净值 {t.price:.4f} 份额 {t.share:.2f}[/green]")
    except (LedgerError, StorageError, ValueError) as e:
        console.print(f"[red]错误: {str(e)}[/red]")


@cli.command()
@pass_app
def holdings(app):
    """查看持仓"""
    ledger = app.ledger
    items = ledger.holdings()
    if not items:
        console.print("[yellow]暂无持仓[/yellow]")
        return

    table = Table(title="持仓", show_header=True, header_style="bold magenta")
    table.add_column("代码", style="cyan")
    table.add_column("名称")
    table.add_column("持有份额", justify="right")
    table.add_column("可卖份额", justify="right")
    table.add_column("待处理", justify="right")

    for h in items:
        fund = find_fund(h.fund_code)
        table.add_row(
            h.fund_code,
            fund.name if fund else '--',
            f"{h.share:.2f}",
            f"{ledger.available_share(h.fund_code):.2f}",
            str(len(ledger.pending(h.fund_code))),
        )

    console.print(table)


if __name__ == '__main__':
    cli()
