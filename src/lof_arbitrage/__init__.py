"""LOF/ETF 折溢价套利监控与交易记账工具"""

__version__ = "0.3.0"
