"""
분류 계산 데이터 모델
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import List, Optional, Union

# 메이저 매치 결과를 나타내는 source 값
MAJOR_MATCH_SOURCE = "Major Match"

SCORE_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%m/%d/%y", "%Y-%m-%dT%H:%M:%S")


def _naive_utc(value: datetime) -> datetime:
    # 타임존 있는 값은 UTC 기준 naive로 변환
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_score_datetime(value: Union[date, datetime, str, None]) -> Optional[datetime]:
    """기록 시각을 datetime으로 변환 (날짜만 있으면 자정), 해석할 수 없으면 None"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    for fmt in SCORE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    # 타임존이 붙은 ISO 문자열 등
    try:
        return _naive_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None


def to_score_value(value: Union[date, datetime, str, None]) -> Union[date, datetime, None]:
    """시각 정보가 있으면 datetime, 날짜만 있으면 date"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    score_datetime = to_score_datetime(value)
    if score_datetime is None:
        return None
    if score_datetime.time() == time.min:
        return score_datetime.date()
    return score_datetime


def to_score_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    """기록 날짜를 date로 변환, 해석할 수 없으면 None"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    score_datetime = to_score_datetime(value)
    return score_datetime.date() if score_datetime else None


@dataclass(frozen=True)
class ClassifierRun:
    """클래시파이어 스테이지 1회 기록"""
    division: str
    classifier: str
    percent: float
    sd: Union[date, datetime, str, None] = None
    source: str = ""
    # 호출자 전달용 (계산에는 사용하지 않음)
    member_number: str = ""
    name: str = ""
    hf: Optional[float] = None
    cur_percent: Optional[float] = None
    club_id: str = ""
    club_name: str = ""

    @property
    def is_major_match(self) -> bool:
        return self.source == MAJOR_MATCH_SOURCE

    @property
    def score_date(self) -> Optional[date]:
        return to_score_date(self.sd)

    @property
    def score_datetime(self) -> Optional[datetime]:
        """정렬용 기록 시각"""
        return to_score_datetime(self.sd)


@dataclass
class ClassificationState:
    """디비전별 분류 계산 상태"""
    percent: float = 0.0
    high_percent: float = 0.0
    window: List[ClassifierRun] = field(default_factory=list)
