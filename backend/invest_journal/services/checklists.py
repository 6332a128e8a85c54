"""
Market-cycle checklists attached to each journal.

A new journal starts from the checklists of the user's latest journal with
every item unchecked, or from the defaults below when there is none.
"""
from typing import Any, Dict, List, Optional, Sequence
import uuid

DEFAULT_BULL_MARKET_CHECKLIST = [
    "시장이 과열되고 있는가? (P/E 비율, 밸류에이션 확인)",
    "호르몬의변화가 일어났는가?",
    "신규 투자자들이 대거 유입되고 있는가?",
    "레버리지/마진 거래가 급증하고 있는가?",
    "암호화폐나 밈주식에 과도한 관심이 쏠리고 있는가?",
    "언론에서 '이번엔 다르다'는 식의 보도가 나오고 있는가?",
    "주식얘기가 나오면 답답해서 한소리하고싶은가?",
    "내 포트폴리오 수익률이 과도하게 높은가?",
    "FOMO(Fear of Missing Out) 심리가 강해지고 있는가?",
    "시장 참여자들을 과소평가하고 있는가?",
]

DEFAULT_BEAR_MARKET_CHECKLIST = [
    "똑똑한척 하면서 전에는 없었던 부정적인 전망을 내놓는 전문가들에게 대중이 집중이 되는가?",
    "주식장을 쳐다도 보기싫은가?",
    "언론에서 '낙담의 주파수를'퍼트리는 보도가 나오고 있는가?",
    "낙담했는가?",
    "현금이 너무나 귀하고 지금이라도 얼마정도를 더 챙겨야한다는 불안감이 엄습했는가?",
    "호르몬의 변화가 일어나 공감능력이 올라갔는가?",
    "작아보였던 금액이 너무나 소중하고 돈에 관련해서 얘기가나오면 스트레스가 받는가?",
    "직장인들이 부러운가?",
    "장기 투자 관점에서 매수 기회가 보이는가?",
    "억울한가?",
]

DEFAULTS = {
    "bull": DEFAULT_BULL_MARKET_CHECKLIST,
    "bear": DEFAULT_BEAR_MARKET_CHECKLIST,
}


def default_checklist(kind: str) -> List[Dict[str, Any]]:
    """Fresh unchecked items for "bull" or "bear"."""
    return [
        {"id": f"{kind}-{index}", "text": text, "checked": False}
        for index, text in enumerate(DEFAULTS[kind])
    ]


def inherit_checklist(kind: str, previous: Optional[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Unchecked copy of a previous checklist, or the defaults if it is empty."""
    items = [
        item for item in (previous if isinstance(previous, list) else [])
        if isinstance(item, dict) and item.get("text")
    ]
    if not items:
        return default_checklist(kind)

    return [
        {"id": str(item.get("id") or uuid.uuid4()), "text": str(item["text"]), "checked": False}
        for item in items
    ]
