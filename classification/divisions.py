"""
USPSA 디비전 테이블

분류 계산 상태는 항상 이 테이블의 모든 디비전을 키로 가진다.
"""
from typing import Callable, Dict, List, TypeVar

T = TypeVar("T")


# 디비전 코드 → 표시명 (USPSA 공식 디비전)
DIVISIONS: Dict[str, str] = {
    "opn": "Open",
    "ltd": "Limited",
    "l10": "Limited 10",
    "prod": "Production",
    "rev": "Revolver",
    "ss": "Single Stack",
    "co": "Carry Optics",
    "lo": "Limited Optics",
    "pcc": "PCC",
}


def division_codes() -> List[str]:
    """디비전 코드 목록 (정의 순서 유지)"""
    return list(DIVISIONS.keys())


def division_name(division: str) -> str:
    """디비전 표시명, 모르는 코드는 그대로 반환"""
    return DIVISIONS.get(division, division)


def is_known_division(division: str) -> bool:
    return division in DIVISIONS


def map_divisions(fn: Callable[[str], T]) -> Dict[str, T]:
    """모든 디비전에 fn을 적용해 {division: fn(division)} 생성"""
    return {div: fn(div) for div in DIVISIONS}
