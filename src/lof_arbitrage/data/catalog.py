"""常用 LOF/ETF 基金目录"""

from typing import List, Optional, Union

from ..models.fund import FundRef, FundType

_LOF = FundType.LOF
_ETF = FundType.ETF

LOF_ETF_LIST: List[FundRef] = [
    # LOF 基金（场内交易的开放式基金）
    FundRef('161725', '招商中证白酒A', _LOF),
    FundRef('161726', '招商中证白酒C', _LOF),
    FundRef('163406', '兴业趋势投资', _LOF),
    FundRef('160323', '华夏磐晟', _LOF),
    FundRef('160324', '华夏磐益', _LOF),
    FundRef('160106', '南方积极配置', _LOF),
    FundRef('160105', '南方积极成长', _LOF),
    FundRef('161005', '富国天惠成长A', _LOF),
    FundRef('161010', '富国天惠成长C', _LOF),
    FundRef('162411', '华宝标普油气', _LOF),
    FundRef('160717', '华夏恒生ETF联接A', _LOF),
    FundRef('160718', '华夏恒生ETF联接C', _LOF),
    FundRef('161825', '银行指数A', _LOF),
    FundRef('161826', '银行指数C', _LOF),
    FundRef('160416', '华安标普石油指数', _LOF),
    FundRef('160417', '华安纳斯达克100', _LOF),
    FundRef('160719', '嘉实恒生中国', _LOF),
    FundRef('160720', '嘉实恒生科技', _LOF),
    FundRef('163208', '兴业中证500', _LOF),
    FundRef('160805', '长盛全债指数', _LOF),

    # ETF 基金（交易所交易基金）
    FundRef('510300', '沪深300ETF', _ETF),
    FundRef('510050', '上证50ETF', _ETF),
    FundRef('510500', '中证500ETF', _ETF),
    FundRef('159915', '创业板ETF', _ETF),
    FundRef('588000', '科创50ETF', _ETF),
    FundRef('512880', '证券ETF', _ETF),
    FundRef('512690', '酒ETF', _ETF),
    FundRef('159996', '消费ETF', _ETF),
    FundRef('512010', '医药ETF', _ETF),
    FundRef('512760', '芯片ETF', _ETF),
    FundRef('515790', '光伏ETF', _ETF),
    FundRef('516160', '新能源车ETF', _ETF),
    FundRef('159766', '旅游ETF', _ETF),
    FundRef('512200', '房地产ETF', _ETF),
    FundRef('512660', '军工ETF', _ETF),
    FundRef('515180', '银行ETF', _ETF),
    FundRef('512400', '有色金属ETF', _ETF),
    FundRef('159985', '豆粕ETF', _ETF),
    FundRef('518880', '黄金ETF', _ETF),
    FundRef('513100', '纳指ETF', _ETF),
    FundRef('513050', '港科技ETF', _ETF),
    FundRef('159920', '恒生ETF', _ETF),
    FundRef('513060', '恒生医疗ETF', _ETF),
    FundRef('513130', '恒生科技ETF', _ETF),
    FundRef('159941', '纳指100ETF', _ETF),
    FundRef('513030', '德国ETF', _ETF),
    FundRef('513080', '法国ETF', _ETF),
    FundRef('513520', '日经ETF', _ETF),
    FundRef('159949', '创业板50ETF', _ETF),
    FundRef('512100', '中证1000ETF', _ETF),
]

_BY_CODE = {fund.code: fund for fund in LOF_ETF_LIST}


def find_fund(code: str) -> Optional[FundRef]:
    """按代码查找基金，未收录返回None"""
    return _BY_CODE.get(str(code).strip())


def list_funds(fund_type: Optional[Union[FundType, str]] = None) -> List[FundRef]:
    """
    列出目录中的基金

    Args:
        fund_type: 基金类型，None表示全部

    Returns:
        基金列表（副本）
    """
    if fund_type is None:
        return list(LOF_ETF_LIST)
    wanted = FundType.parse(fund_type)
    return [fund for fund in LOF_ETF_LIST if fund.type is wanted]
