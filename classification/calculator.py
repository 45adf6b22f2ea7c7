"""
USPSA 분류(Classification) 계산 모듈

클래시파이어 기록을 날짜순으로 접어서 디비전별 등급을 계산
- 등급 테이블 (퍼센트 → 등급, 등급 → 플래그 기준)
- B/C 플래그 기반 기록 채택 여부
- 디비전별 최근 기록 윈도우 (중복 스테이지 보정)
- D 플래그 (스테이지 중복 제거) 후 Best 4/6 평균
- 최고 퍼센트(high water mark)로 최종 등급 결정
"""
import json
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from functools import cmp_to_key
from itertools import count
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from classification.divisions import division_name, map_divisions
from classification.models import ClassificationState, ClassifierRun


# =====================================================
# 상수 정의
# =====================================================

# 등급 순서 (X = 미정의/최저)
CLASSIFICATION_RANKS = ["X", "U", "D", "C", "B", "A", "M", "GM"]

# B 플래그: 해당 디비전 등급 기준 최저 인정 퍼센트
LOWEST_ALLOWED_PERCENT_FOR_CLASS = {
    "GM": 90,
    "M": 80,
    "A": 70,
    "B": 55,
    "C": 35,
}

# C 플래그: 전 디비전 최고 등급 기준 최저 인정 퍼센트
LOWEST_ALLOWED_PERCENT_FOR_OTHER_DIVISION_CLASS = {
    "GM": 85,
    "M": 75,
    "A": 60,
    "B": 40,
}

# 윈도우 최대 크기 (중복 스테이지가 있으면 그만큼 늘어남)
WINDOW_CAP = 8

# 플래그 없이 무조건 채택되는 윈도우 길이
BOOTSTRAP_WINDOW_SIZE = 4

# 메이저 매치 기록용 스테이지 ID 접두어 (실제 클래시파이어 번호와 겹치지 않음)
MAJOR_MATCH_ID_PREFIX = "major-match#"


# =====================================================
# 등급 테이블
# =====================================================

def classification_rank(classification: Optional[str]) -> int:
    """등급 순위 (모르는 등급은 -1)"""
    try:
        return CLASSIFICATION_RANKS.index(classification)
    except ValueError:
        return -1


def class_for_percent(cur_percent: float) -> str:
    """퍼센트 → 등급"""
    if cur_percent <= 0:
        return "U"
    elif cur_percent < 40:
        return "D"
    elif cur_percent < 60:
        return "C"
    elif cur_percent < 75:
        return "B"
    elif cur_percent < 85:
        return "A"
    elif cur_percent < 95:
        return "M"
    elif cur_percent >= 95:
        return "GM"

    # NaN
    return "U"


def lowest_allowed_percent_for_class(classification: Optional[str]) -> float:
    return LOWEST_ALLOWED_PERCENT_FOR_CLASS.get(classification, 0)


def lowest_allowed_percent_for_other_division_class(highest: Optional[str]) -> float:
    return LOWEST_ALLOWED_PERCENT_FOR_OTHER_DIVISION_CLASS.get(highest, 0)


def highest_classification(div_to_class: Dict[str, str]) -> Optional[str]:
    """디비전별 등급 중 가장 높은 등급 (동률이면 먼저 나온 값 유지)"""
    highest = None
    for cur_class in div_to_class.values():
        if classification_rank(highest) < classification_rank(cur_class):
            highest = cur_class
    return highest


def get_div_to_class(state: Dict[str, ClassificationState]) -> Dict[str, str]:
    """{division: 최고 퍼센트 기준 등급}"""
    return {div: class_for_percent(s.high_percent) for div, s in state.items()}


def new_classification_calculation_state() -> Dict[str, ClassificationState]:
    return map_divisions(lambda div: ClassificationState())


# =====================================================
# 플래그 판정
# =====================================================

def can_be_inserted(
    run: ClassifierRun,
    state: Dict[str, ClassificationState],
    percent_field: str = "percent"
) -> bool:
    """기록이 해당 디비전 윈도우에 들어갈 수 있는지"""
    percent = getattr(run, percent_field)

    # 0점은 항상 제외
    if not percent:
        return False

    # 처음 기록들은 무조건 채택
    if len(state[run.division].window) <= BOOTSTRAP_WINDOW_SIZE:
        return True

    div_to_class = get_div_to_class(state)
    is_b_flag = percent <= lowest_allowed_percent_for_class(div_to_class[run.division])
    is_c_flag = percent <= lowest_allowed_percent_for_other_division_class(
        highest_classification(div_to_class)
    )

    return not (is_b_flag or is_c_flag)


# =====================================================
# 윈도우 관리
# =====================================================

def number_of_duplicates(window: Iterable[ClassifierRun]) -> int:
    """중복 스테이지 수 (전체 기록 수 - 고유 스테이지 수)"""
    counts = Counter(c.classifier for c in window)
    return sum(n - 1 for n in counts.values())


def has_duplicate_in_window(run: ClassifierRun, window: Iterable[ClassifierRun]) -> bool:
    """True면 윈도우가 줄어들지 않고 늘어남"""
    return any(c.classifier == run.classifier for c in window)


def has_duplicate(run: ClassifierRun, state: Dict[str, ClassificationState]) -> bool:
    return has_duplicate_in_window(run, state[run.division].window)


def add_to_cur_window(run: ClassifierRun, cur_window: List[ClassifierRun]) -> None:
    """
    윈도우에 기록 추가 (제자리 수정, 오래된 순)

    최근 WINDOW_CAP개를 남기고, 중복 스테이지 수만큼 잘린 기록 중
    가장 최근 것들을 다시 앞에 붙인다.
    """
    cur_window.append(run)
    if len(cur_window) <= WINDOW_CAP:
        return

    cutoff = len(cur_window) - WINDOW_CAP
    overflow = cur_window[:cutoff]
    kept = cur_window[cutoff:]

    extra = min(number_of_duplicates(cur_window), len(overflow))
    reclaimed = overflow[len(overflow) - extra:] if extra else []

    cur_window[:] = reclaimed + kept


# =====================================================
# 퍼센트 계산
# =====================================================

def window_size_for_score(distinct_count: int) -> int:
    """점수 계산에 사용할 기록 수 (4개 미만이면 0)"""
    if distinct_count < 4:
        return 0
    elif distinct_count == 4:
        return 4
    return 6


def percent_for_div_window(
    division: str,
    state: Dict[str, ClassificationState],
    percent_field: str = "percent"
) -> float:
    """
    디비전 윈도우의 현재 퍼센트

    퍼센트 내림차순 정렬 후 스테이지별 최고 기록만 남기고(D 플래그),
    상위 4개 또는 6개를 평균
    """
    window = sorted(
        state[division].window,
        key=lambda c: getattr(c, percent_field) or 0,
        reverse=True
    )

    seen = set()
    d_flags_applied = []
    for c in window:
        if c.classifier in seen:
            continue
        seen.add(c.classifier)
        d_flags_applied.append(c)

    scored = d_flags_applied[:window_size_for_score(len(d_flags_applied))]

    total = 0
    for c in scored:
        total += getattr(c, percent_field) / len(scored)
    return total


# =====================================================
# 분류 계산
# =====================================================

def _num_compare(a: Optional[float], b: Optional[float]) -> int:
    a = a or 0
    b = b or 0
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def compare_runs(a: ClassifierRun, b: ClassifierRun) -> int:
    """기록 시각 오름차순, 시각이 같거나 비교 불가면 퍼센트 오름차순"""
    a_date, b_date = a.score_datetime, b.score_datetime
    if a_date is not None and b_date is not None and a_date != b_date:
        return -1 if a_date < b_date else 1
    return _num_compare(a.percent, b.percent)


def prepare_runs(runs: Iterable[ClassifierRun]) -> List[ClassifierRun]:
    """
    계산 순서로 정렬하고 메이저 매치 기록에 고유 스테이지 ID 부여

    정렬은 안정 정렬이므로 날짜/퍼센트가 같으면 입력 순서 유지
    """
    ordered = sorted(runs, key=cmp_to_key(compare_runs))
    major_ids = count(1)
    return [
        replace(c, classifier=f"{MAJOR_MATCH_ID_PREFIX}{next(major_ids)}") if c.is_major_match else c
        for c in ordered
    ]


def calculate_uspsa_classification(
    runs: Iterable[ClassifierRun],
    percent_field: str = "percent"
) -> Dict[str, ClassificationState]:
    """선수 1명의 전체 기록으로 디비전별 분류 상태 계산"""
    state = new_classification_calculation_state()

    for c in prepare_runs(runs):
        if c.division not in state:
            logger.warning(f"알 수 없는 디비전: {c.division} (분류 상태 추가)")
            state[c.division] = ClassificationState()

        if not can_be_inserted(c, state, percent_field):
            continue

        div_state = state[c.division]
        add_to_cur_window(c, div_state.window)

        # 기록이 충분할 때만 계산
        if len(div_state.window) >= 4:
            new_percent = percent_for_div_window(c.division, state, percent_field)
            if new_percent > div_state.high_percent:
                div_state.high_percent = new_percent
            div_state.percent = new_percent

    return state


# =====================================================
# 결과 데이터 클래스
# =====================================================

@dataclass
class DivisionClassification:
    """디비전별 분류 결과"""
    division: str
    division_name: str
    classification: str
    percent: float
    high_percent: float
    window_size: int


@dataclass
class ShooterClassification:
    """선수 분류 결과"""
    member_number: str
    name: str
    runs_count: int
    highest_class: Optional[str]
    divisions: List[DivisionClassification] = field(default_factory=list)

    def for_division(self, division: str) -> Optional[DivisionClassification]:
        for d in self.divisions:
            if d.division == division:
                return d
        return None


def summarize_state(state: Dict[str, ClassificationState]) -> List[DivisionClassification]:
    """분류 상태 → 디비전별 결과 목록"""
    return [
        DivisionClassification(
            division=div,
            division_name=division_name(div),
            classification=class_for_percent(s.high_percent),
            percent=round(s.percent, 4),
            high_percent=round(s.high_percent, 4),
            window_size=len(s.window),
        )
        for div, s in state.items()
    ]


# =====================================================
# 분류 계산기 클래스
# =====================================================

class ClassificationCalculator:
    """전체 선수 기록 기반 분류 계산기"""

    def __init__(self, data_file: str = None):
        self.runs: List[ClassifierRun] = []
        self.data = None
        self._member_runs: Dict[str, List[ClassifierRun]] = {}

        if data_file:
            self.load_data(data_file)

    def load_data(self, data_file: str):
        """JSON 데이터 로드"""
        with open(data_file, "r", encoding="utf-8") as f:
            self.data = json.load(f)

        self._extract_runs()
        logger.info(f"데이터 로드 완료: {len(self.runs)}개 기록")

    def load_from_data(self, data: dict):
        """메모리 데이터에서 로드

        Args:
            data: {"runs": [...], "classifiers": [...], "calibration": {...}} 형식
        """
        self.data = data
        self._extract_runs()
        logger.info(f"메모리 데이터 로드 완료: {len(self.runs)}개 기록")

    def _extract_runs(self):
        """원본 기록을 정규화/검증해서 ClassifierRun 목록 생성"""
        self.runs = []
        self._member_runs = {}
        if not self.data:
            return
        if not isinstance(self.data, dict):
            logger.error(f"데이터 형식 오류: 객체가 아님 ({type(self.data).__name__})")
            return

        # data_pipeline.schemas가 classification.models를 참조
        from data_pipeline.validators import build_runs

        runs, result = build_runs(self.data.get("runs", []))
        if result.errors:
            logger.warning(f"유효하지 않은 기록 {len(result.errors)}건 제외 (통과율 {result.pass_rate:.1%})")

        member_runs: Dict[str, List[ClassifierRun]] = defaultdict(list)
        for run in runs:
            if not run.member_number:
                continue
            member_runs[run.member_number].append(run)

        self.runs = runs
        self._member_runs = dict(member_runs)

    @property
    def members(self) -> List[str]:
        return sorted(self._member_runs.keys())

    def runs_for_member(self, member_number: str) -> List[ClassifierRun]:
        return self._member_runs.get(member_number.strip().upper(), [])

    def calculate_member(self, member_number: str) -> Optional[ShooterClassification]:
        """선수 1명 분류 계산 (기록이 없으면 None)"""
        runs = self.runs_for_member(member_number)
        if not runs:
            return None

        state = calculate_uspsa_classification(runs)
        names = [r.name for r in runs if r.name]

        return ShooterClassification(
            member_number=runs[0].member_number,
            name=names[-1] if names else "",
            runs_count=len(runs),
            highest_class=highest_classification(get_div_to_class(state)),
            divisions=summarize_state(state),
        )

    def calculate_all(self) -> List[ShooterClassification]:
        """전체 선수 분류 계산 (회원번호 순)"""
        results = []
        for member_number in self.members:
            classification = self.calculate_member(member_number)
            if classification:
                results.append(classification)

        logger.info(f"분류 계산 완료: {len(results)}명")
        return results

    def export_classifications(self, output_file: str):
        """분류 결과를 JSON으로 내보내기"""
        classifications = self.calculate_all()

        export_data = {
            "meta": {
                "generated_at": datetime.now().isoformat(),
                "total_members": len(classifications),
                "total_runs": len(self.runs),
            },
            "classifications": [asdict(c) for c in classifications],
        }

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(export_data, f, ensure_ascii=False, indent=2)

        logger.info(f"분류 내보내기 완료: {output_file}")

    def print_classification_summary(self, classification: ShooterClassification):
        """선수 분류 요약 출력"""
        print(f"\n{'='*60}")
        print(f" {classification.member_number} {classification.name} ({classification.runs_count}개 기록)")
        print(f"{'='*60}")
        print(f"{'디비전':<16} {'등급':>4} {'현재%':>9} {'최고%':>9} {'윈도우':>6}")
        print(f"{'-'*60}")

        for d in classification.divisions:
            if not d.window_size:
                continue
            print(f"{d.division_name:<16} {d.classification:>4} {d.percent:>9.4f} {d.high_percent:>9.4f} {d.window_size:>6}")


def state_to_dict(state: Dict[str, ClassificationState]) -> Dict[str, Any]:
    """분류 상태를 JSON 직렬화 가능한 dict로 변환"""
    return {
        div: {
            "percent": s.percent,
            "high_percent": s.high_percent,
            "window": [asdict(c) for c in s.window],
        }
        for div, s in state.items()
    }


# =====================================================
# CLI
# =====================================================

def main():
    import argparse

    parser = argparse.ArgumentParser(description="USPSA 분류 계산기")
    parser.add_argument("--data", type=str, default="data/classification_data.json", help="데이터 파일")
    parser.add_argument("--output", type=str, default="data/classifications.json", help="출력 파일")
    parser.add_argument("--member", type=str, help="회원번호")
    parser.add_argument("--all", action="store_true", help="전체 선수 분류 계산")

    args = parser.parse_args()

    calculator = ClassificationCalculator(args.data)

    if args.all:
        calculator.export_classifications(args.output)
    elif args.member:
        classification = calculator.calculate_member(args.member)
        if not classification:
            logger.error(f"선수를 찾을 수 없습니다: {args.member}")
            return
        calculator.print_classification_summary(classification)
    else:
        parser.error("--member 또는 --all 이 필요합니다")


if __name__ == "__main__":
    main()
