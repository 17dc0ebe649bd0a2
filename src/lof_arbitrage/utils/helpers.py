"""工具函数"""

import math
from datetime import datetime
from typing import Any, Optional


def safe_float(value: Any, default: float = 0.0) -> float:
    """
    转换为浮点数，无法解析时返回默认值

    Args:
        value: 原始值
        default: 默认值

    Returns:
        浮点数
    """
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def format_money(value: Optional[float], decimal: int = 2) -> str:
    """
    格式化金额，缺失值显示为 --

    Args:
        value: 金额
        decimal: 小数位数

    Returns:
        格式化后的字符串
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "--"
    return f"{value:.{decimal}f}"


def format_number(value: float, decimal: int = 2) -> str:
    """
    格式化数字显示

    Args:
        value: 数值
        decimal: 小数位数

    Returns:
        格式化后的字符串
    """
    if abs(value) >= 1e8:
        return f"{value / 1e8:.{decimal}f}亿"
    elif abs(value) >= 1e4:
        return f"{value / 1e4:.{decimal}f}万"
    else:
        return f"{value:.{decimal}f}"


def format_percentage(value: Optional[float], decimal: int = 2, with_sign: bool = True) -> str:
    """
    格式化百分比显示

    Args:
        value: 百分比数值，None表示数据不可用
        decimal: 小数位数
        with_sign: 是否显示正负号

    Returns:
        格式化后的字符串
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "--"
    sign = "+" if value > 0 and with_sign else ""
    return f"{sign}{value:.{decimal}f}%"


def parse_date(date_str: str, default_format: str = "%Y-%m-%d") -> Optional[datetime]:
    """
    解析日期字符串

    Args:
        date_str: 日期字符串
        default_format: 默认日期格式

    Returns:
        datetime对象，解析失败返回None
    """
    formats = [
        default_format,
        "%Y%m%d",
        "%Y/%m/%d",
        "%Y-%m-%d %H:%M:%S"
    ]

    for fmt in formats:
        try:
            return datetime.strptime(str(date_str), fmt)
        except ValueError:
            continue

    return None


def validate_fund_code(code: str) -> bool:
    """
    验证基金代码格式

    Args:
        code: 基金代码

    Returns:
        是否有效
    """
    # 场内基金代码为6位数字
    return code.isdigit() and len(code) == 6


def get_color_by_value(value: Optional[float]) -> str:
    """
    根据数值获取颜色（A股习惯：红涨绿跌）

    Args:
        value: 数值

    Returns:
        颜色名称
    """
    if value is None:
        return "white"
    if value > 0:
        return "red"
    elif value < 0:
        return "green"
    else:
        return "white"
