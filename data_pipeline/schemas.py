"""
데이터 파이프라인 스키마 정의

Pydantic 모델을 사용하여 클래시파이어 기록 유효성 검사 및 타입 강제
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any, Union
from datetime import date, datetime
from enum import Enum

from classification.divisions import is_known_division
from classification.models import ClassifierRun, to_score_value


class ValidationSeverity(str, Enum):
    """검증 오류 심각도"""
    CRITICAL = "critical"   # 계산 제외
    HIGH = "high"           # 계산 제외, 수동 검토 필요
    MEDIUM = "medium"       # 계산 포함, 경고 표시
    LOW = "low"             # 계산 포함, 로그만
    INFO = "info"           # 정보성


class ValidationError(BaseModel):
    """검증 오류"""
    error_type: str = Field(..., description="오류 유형")
    severity: ValidationSeverity = Field(..., description="심각도")
    message: str = Field(..., description="오류 메시지")
    field: Optional[str] = Field(None, description="관련 필드")
    value: Optional[Any] = Field(None, description="문제가 된 값")
    suggestion: Optional[str] = Field(None, description="해결 제안")


class ValidationResult(BaseModel):
    """검증 결과"""
    is_valid: bool = Field(default=True, description="최종 유효성")
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationError] = Field(default_factory=list)
    pass_rate: float = Field(default=1.0, description="통과율 (0-1)")
    validated_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_critical_errors(self) -> bool:
        return any(e.severity in [ValidationSeverity.CRITICAL, ValidationSeverity.HIGH] for e in self.errors)

    @property
    def can_calculate(self) -> bool:
        """분류 계산에 사용 가능 여부"""
        return not self.has_critical_errors


# ==================== 핵심 스키마 ====================

class ClassifierRunSchema(BaseModel):
    """클래시파이어 기록 스키마"""

    # 필수 필드
    division: str = Field(..., min_length=1, description="디비전 코드 (opn, ltd, co ...)")
    classifier: str = Field(..., min_length=1, description="클래시파이어 번호 (99-11 등)")

    # 점수
    percent: Optional[float] = Field(default=0.0, ge=0, description="HHF 대비 퍼센트")
    hf: Optional[float] = Field(None, ge=0, description="히트 팩터")
    cur_percent: Optional[float] = Field(None, ge=0, description="현재 HHF 기준 퍼센트")

    # 기록 정보
    sd: Optional[Union[datetime, date]] = Field(None, description="기록 날짜 (시각 포함 가능)")
    source: str = Field(default="", description="기록 출처 (Major Match 등)")

    # 선수 정보
    member_number: str = Field(default="", description="회원번호")
    name: str = Field(default="", description="선수명")
    club_id: str = Field(default="", description="클럽 ID")
    club_name: str = Field(default="", description="클럽명")

    @field_validator("division")
    @classmethod
    def validate_division(cls, v: str) -> str:
        """디비전 코드 검증"""
        v = v.strip().lower()
        if not is_known_division(v):
            raise ValueError(f"알 수 없는 디비전입니다: {v}")
        return v

    @field_validator("classifier")
    @classmethod
    def validate_classifier(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("클래시파이어 번호가 비어 있습니다")
        return v

    @field_validator("sd", mode="before")
    @classmethod
    def parse_sd(cls, v: Any) -> Union[datetime, date, None]:
        """문자열 날짜 허용, 해석 불가면 None"""
        return to_score_value(v)

    @field_validator("percent", mode="before")
    @classmethod
    def empty_percent(cls, v: Any) -> Any:
        """빈 값은 0점 (계산에 포함되지 않음)"""
        if v is None or v == "":
            return 0.0
        return v

    @field_validator("member_number")
    @classmethod
    def validate_member_number(cls, v: str) -> str:
        return v.strip().upper()

    def to_run(self) -> ClassifierRun:
        """분류 계산용 ClassifierRun 변환"""
        return ClassifierRun(
            division=self.division,
            classifier=self.classifier,
            percent=self.percent or 0.0,
            sd=self.sd,
            source=self.source,
            member_number=self.member_number,
            name=self.name,
            hf=self.hf,
            cur_percent=self.cur_percent,
            club_id=self.club_id,
            club_name=self.club_name,
        )
