"""
데이터 정규화 모듈
- 디비전명, 기록 출처, 날짜 정규화
- 레거시/camelCase 키를 표준 키로 변환
"""
from datetime import date, datetime
from typing import Optional, Dict, Any, Tuple, Union

from classification.models import MAJOR_MATCH_SOURCE, to_score_value


# =============================================================================
# 정규화 매핑 테이블 (Single Source of Truth)
# =============================================================================

DIVISION_NORMALIZE_MAP = {
    # 표준 코드
    "opn": "opn",
    "ltd": "ltd",
    "l10": "l10",
    "prod": "prod",
    "rev": "rev",
    "ss": "ss",
    "co": "co",
    "lo": "lo",
    "pcc": "pcc",
    # 풀네임
    "open": "opn",
    "limited": "ltd",
    "limited 10": "l10",
    "limited10": "l10",
    "production": "prod",
    "revolver": "rev",
    "single stack": "ss",
    "singlestack": "ss",
    "carry optics": "co",
    "carryoptics": "co",
    "limited optics": "lo",
    "limitedoptics": "lo",
    "pistol caliber carbine": "pcc",
    "carbine": "pcc",
    # 약어 변형
    "o": "opn",
    "l": "ltd",
    "p": "prod",
    "r": "rev",
    "cp": "co",
}

SOURCE_NORMALIZE_MAP = {
    "major match": MAJOR_MATCH_SOURCE,
    "major": MAJOR_MATCH_SOURCE,
    "nationals": MAJOR_MATCH_SOURCE,
    "stage score": "Stage Score",
    "classifier": "Stage Score",
}

# 원본 키 → 표준 키
FIELD_ALIASES = {
    "classifierId": "classifier",
    "classifier_id": "classifier",
    "classifierNumber": "classifier",
    "scoreDate": "sd",
    "score_date": "sd",
    "date": "sd",
    "memberNumber": "member_number",
    "curPercent": "cur_percent",
    "clubid": "club_id",
    "clubId": "club_id",
    "club_name": "club_name",
    "clubName": "club_name",
}


# =============================================================================
# 필드 정규화
# =============================================================================

def normalize_division(division: Optional[str]) -> Optional[str]:
    """디비전명 정규화 (모르는 값은 소문자 그대로)"""
    if not division:
        return None
    key = " ".join(str(division).lower().split())
    return DIVISION_NORMALIZE_MAP.get(key, key)


def normalize_source(source: Optional[str]) -> str:
    """기록 출처 정규화"""
    if not source:
        return ""
    key = " ".join(str(source).lower().split())
    return SOURCE_NORMALIZE_MAP.get(key, str(source).strip())


def parse_score_date(value: Any) -> Union[date, datetime, None]:
    """기록 날짜 파싱 (시각이 있으면 datetime 유지, 해석 불가면 None)"""
    return to_score_value(value)


def normalize_classifier(classifier: Any) -> str:
    """클래시파이어 번호 정규화 (공백 제거, 문자열 변환)"""
    if classifier is None:
        return ""
    return str(classifier).strip().upper()


# =============================================================================
# 레코드 정규화
# =============================================================================

def normalize_run_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    클래시파이어 기록 레코드 정규화
    - 원본 키 → 표준 키
    - 디비전/출처/날짜/번호 정규화
    """
    normalized = {}
    for key, value in record.items():
        normalized[FIELD_ALIASES.get(key, key)] = value

    if "division" in normalized:
        normalized["division"] = normalize_division(normalized["division"])

    if "classifier" in normalized:
        normalized["classifier"] = normalize_classifier(normalized["classifier"])

    normalized["source"] = normalize_source(normalized.get("source"))

    if "sd" in normalized:
        normalized["sd"] = parse_score_date(normalized["sd"])

    for key in ("member_number", "name", "club_id", "club_name"):
        if normalized.get(key) is None:
            normalized.pop(key, None)
        elif key in normalized:
            normalized[key] = str(normalized[key]).strip()

    return normalized


def get_normalization_changes(original: Dict[str, Any], normalized: Dict[str, Any]) -> Dict[str, Tuple[Any, Any]]:
    """
    정규화 전후 변경사항 추출
    Returns: {필드명: (이전값, 이후값)}
    """
    changes = {}
    compare_fields = ["division", "classifier", "source"]

    for field in compare_fields:
        old_val = original.get(field)
        new_val = normalized.get(field)

        if old_val != new_val:
            changes[field] = (old_val, new_val)

    return changes
