"""
클래시파이어 목록/기록 조회 유틸리티

- 디비전별 클래시파이어 목록 (메모리 캐시)
- 클래시파이어 기록 정렬/필터/페이지네이션
- 백분위 기반 추천 HHF 계산
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from classification.divisions import is_known_division, map_divisions
from classification.models import ClassifierRun

# 기록 목록 기본 페이지 크기
PAGE_SIZE = 100

# 과거 HHF 필터 허용 오차
HHF_FILTER_TOLERANCE = 0.00015

# 클럽 필터 결과 최대 개수
CLUB_FILTER_LIMIT = 10


def HF(value: Optional[float]) -> Optional[float]:
    """히트 팩터 반올림 (소수점 4자리)"""
    if value is None:
        return None
    return round(value, 4)


def recommended_hhf_by_percentile_and_percent(
    runs: List[Dict[str, Any]],
    target_percentile: Optional[float],
    percent: float
) -> Optional[float]:
    """
    백분위 기반 추천 HHF

    target_percentile에 가장 가까운 기록의 HF를 기준으로,
    그 백분위 선수가 percent 점수를 받도록 HHF를 계산한다.
    GM(95%)은 1백분위, M(85%)은 5백분위, A(75%)는 15백분위와 함께 사용.

    Args:
        runs: percentile, hf가 있는 기록 목록
        target_percentile: 찾을 백분위 (0-100)
        percent: 해당 백분위에 줄 퍼센트 (0-100)
    """
    candidates = [r for r in runs if r.get("hf") and r.get("percentile")]
    if not candidates or not target_percentile or not percent:
        return None

    closest = min(candidates, key=lambda r: abs(r["percentile"] - target_percentile))
    return HF(
        closest["hf"] * closest["percentile"] / target_percentile / (percent / 100.0)
    )


def _sort_key(value: Any, descending: bool):
    # None은 정렬 방향과 관계없이 항상 뒤로
    if value is None:
        return (-1,) if descending else (1,)
    return (0, value)


def multisort(
    items: List[Dict[str, Any]],
    sort_fields: Optional[Sequence[str]],
    orders: Optional[Sequence[str]]
) -> List[Dict[str, Any]]:
    """여러 필드 기준 정렬 (orders: asc/desc, 생략시 asc)"""
    result = list(items)
    if not sort_fields:
        return result

    orders = list(orders or [])
    for i in reversed(range(len(sort_fields))):
        field_name = sort_fields[i]
        if not field_name:
            continue
        descending = i < len(orders) and orders[i].lower() == "desc"
        result.sort(key=lambda item: _sort_key(item.get(field_name), descending), reverse=descending)
    return result


def paginate(items: List[Any], page: int, page_size: int = PAGE_SIZE) -> List[Any]:
    page = max(page, 1)
    return items[(page - 1) * page_size: page * page_size]


def filter_runs(
    runs: List[Dict[str, Any]],
    hhf: Optional[float] = None,
    club: Optional[str] = None,
    text: Optional[str] = None
) -> List[Dict[str, Any]]:
    """기록 필터 (과거 HHF, 검색어, 클럽)"""
    if hhf:
        runs = [
            r for r in runs
            if r.get("historical_hhf") is not None
            and abs(hhf - r["historical_hhf"]) <= HHF_FILTER_TOLERANCE
        ]
    if text:
        needle = text.lower()
        runs = [
            r for r in runs
            if needle in "###".join(
                str(r.get(k) or "") for k in ("club_id", "club_name", "member_number", "name")
            ).lower()
        ]
    if club:
        runs = [r for r in runs if r.get("club_id") == club][:CLUB_FILTER_LIMIT]
    return runs


def basic_info_for_classifier(c: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "classifier": c.get("classifier"),
        "name": c.get("name", ""),
    }


def run_to_dict(run: ClassifierRun, hhf: Optional[float]) -> Dict[str, Any]:
    """기록 → 목록 응답용 dict"""
    historical_hhf = None
    if run.hf and run.percent:
        historical_hhf = HF(run.hf / (run.percent / 100.0))

    cur_percent = run.cur_percent
    if cur_percent is None and run.hf is not None and hhf:
        cur_percent = round(run.hf / hhf * 100, 4)

    return {
        "member_number": run.member_number,
        "name": run.name,
        "division": run.division,
        "classifier": run.classifier,
        "hf": run.hf,
        "percent": run.percent,
        "cur_percent": cur_percent,
        "historical_hhf": historical_hhf,
        "sd": run.score_date.isoformat() if run.score_date else None,
        "source": run.source,
        "club_id": run.club_id,
        "club_name": run.club_name,
    }


class ClassifierCatalog:
    """클래시파이어 정의 + 기록 조회"""

    def __init__(
        self,
        classifiers: Optional[List[Dict[str, Any]]] = None,
        runs: Optional[List[ClassifierRun]] = None,
        calibration: Optional[Dict[str, Dict[str, float]]] = None
    ):
        self.classifiers = [
            {**c, "classifier": str(c.get("classifier", "")).strip().upper()}
            for c in (classifiers or [])
        ]
        self.calibration = calibration or {}
        self._runs_by_key: Dict[tuple, List[ClassifierRun]] = defaultdict(list)
        self._division_cache: Dict[str, List[Dict[str, Any]]] = {}

        for run in runs or []:
            self._runs_by_key[(run.division, run.classifier)].append(run)

    def find(self, number: str) -> Optional[Dict[str, Any]]:
        number = number.strip().upper()
        for c in self.classifiers:
            if c["classifier"] == number:
                return c
        return None

    def hhf_for(self, c: Dict[str, Any], division: str) -> Optional[float]:
        return (c.get("hhfs") or {}).get(division)

    def calibration_for(self, division: str) -> Dict[str, float]:
        """디비전 백분위 테이블 (pGM, pM, pA)"""
        return self.calibration.get(division, {})

    def runs_for_division_classifier(
        self,
        number: str,
        division: str,
        hhf: Optional[float] = None,
        include_no_hf: bool = False
    ) -> List[Dict[str, Any]]:
        """
        디비전/클래시파이어 기록 목록

        HF 내림차순으로 percentile(상위 %)을 부여한다.
        include_no_hf가 False면 HF 없는 (레거시) 기록 제외.
        """
        runs = [run_to_dict(r, hhf) for r in self._runs_by_key.get((division, number.strip().upper()), [])]

        with_hf = sorted((r for r in runs if r["hf"] is not None), key=lambda r: r["hf"], reverse=True)
        total = len(with_hf)
        for i, r in enumerate(with_hf):
            r["percentile"] = round(100.0 * (i + 1) / total, 2)

        if not include_no_hf:
            return with_hf

        legacy = [r for r in runs if r["hf"] is None]
        for r in legacy:
            r["percentile"] = None
        return with_hf + legacy

    def extended_info_for_classifier(self, c: Dict[str, Any], division: str) -> Dict[str, Any]:
        """디비전 기준 클래시파이어 통계"""
        hhf = self.hhf_for(c, division)
        runs = self.runs_for_division_classifier(c["classifier"], division, hhf=hhf)
        hfs = [r["hf"] for r in runs]

        return {
            "division": division,
            "hhf": hhf,
            "runs": len(runs),
            "top_hf": HF(max(hfs)) if hfs else None,
            "avg_hf": HF(sum(hfs) / len(hfs)) if hfs else None,
        }

    def classifiers_for_division(self, division: str) -> List[Dict[str, Any]]:
        """디비전별 클래시파이어 목록 (알려진 디비전만 캐시)"""
        division = division.strip().lower()
        if division in self._division_cache:
            return self._division_cache[division]

        listing = [
            {
                **basic_info_for_classifier(c),
                **self.extended_info_for_classifier(c, division),
            }
            for c in self.classifiers
        ]
        if is_known_division(division):
            self._division_cache[division] = listing
        return listing

    def hydrate(self):
        """모든 디비전 캐시 구축"""
        logger.info("클래시파이어 캐시 구축 중...")
        counts = map_divisions(lambda div: len(self.classifiers_for_division(div)))
        logger.info(f"클래시파이어 캐시 구축 완료: {len(counts)}개 디비전")

    def clear_cache(self):
        self._division_cache.clear()
