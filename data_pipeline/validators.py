"""
데이터 검증 시스템

Stage 1: Technical Validation (기술적 검증)
Stage 2: Business Logic Validation (비즈니스 로직 검증)
"""

from collections import defaultdict
from typing import List, Dict, Any, Tuple
from pydantic import ValidationError as PydanticValidationError
from datetime import datetime, date
from loguru import logger

from classification.models import ClassifierRun
from .normalizer import normalize_run_record
from .schemas import (
    ClassifierRunSchema,
    ValidationResult,
    ValidationError,
    ValidationSeverity,
)


class TechnicalValidator:
    """
    Stage 1: 기술적 검증

    - 필드 존재 여부
    - 데이터 타입
    - 디비전 코드
    - 퍼센트 범위
    """

    def validate_run(self, data: Dict[str, Any]) -> ValidationResult:
        """클래시파이어 기록 기술적 검증 (정규화된 레코드 기준)"""
        errors = []
        warnings = []

        try:
            ClassifierRunSchema(**data)
        except PydanticValidationError as e:
            for error in e.errors():
                errors.append(ValidationError(
                    error_type="SCHEMA_VALIDATION_FAILED",
                    severity=ValidationSeverity.CRITICAL,
                    message=error["msg"],
                    field=".".join(str(loc) for loc in error["loc"]),
                    value=error.get("input"),
                    suggestion="데이터 형식을 확인하세요"
                ))

        percent = data.get("percent")
        if isinstance(percent, (int, float)):
            # 0점은 계산에 포함되지 않음
            if percent == 0:
                warnings.append(ValidationError(
                    error_type="ZERO_PERCENT",
                    severity=ValidationSeverity.LOW,
                    message="0점 기록은 분류 계산에 포함되지 않습니다",
                    field="percent",
                    value=percent
                ))
            elif percent > 100:
                warnings.append(ValidationError(
                    error_type="PERCENT_OVER_100",
                    severity=ValidationSeverity.MEDIUM,
                    message=f"퍼센트가 100을 넘습니다: {percent}",
                    field="percent",
                    value=percent,
                    suggestion="HHF가 갱신되었는지 확인하세요"
                ))

        if not data.get("sd"):
            warnings.append(ValidationError(
                error_type="MISSING_SCORE_DATE",
                severity=ValidationSeverity.MEDIUM,
                message="기록 날짜가 없습니다 (퍼센트 순으로 정렬됨)",
                field="sd"
            ))

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            pass_rate=1.0 if not errors else 0.0,
            validated_at=datetime.now()
        )

    def validate_batch(self, records: List[Dict[str, Any]]) -> ValidationResult:
        """배치 검증"""
        all_errors = []
        all_warnings = []
        valid_count = 0

        for i, record in enumerate(records):
            result = self.validate_run(record)
            if result.is_valid:
                valid_count += 1
            else:
                for error in result.errors:
                    error.message = f"[Record {i}] {error.message}"
                    all_errors.append(error)
            all_warnings.extend(result.warnings)

        return ValidationResult(
            is_valid=valid_count == len(records),
            errors=all_errors,
            warnings=all_warnings,
            pass_rate=valid_count / len(records) if records else 0.0,
            validated_at=datetime.now()
        )


class BusinessValidator:
    """
    Stage 2: 비즈니스 로직 검증

    - 같은 날 같은 스테이지 중복 기록 감지
    - 미래 날짜 기록 감지
    """

    def validate_member_runs(self, runs: List[ClassifierRun]) -> ValidationResult:
        """선수 1명의 기록 일관성 검증 (경고만 생성)"""
        warnings = []
        today = date.today()

        same_day = defaultdict(int)
        for run in runs:
            score_date = run.score_date

            if score_date and score_date > today:
                warnings.append(ValidationError(
                    error_type="FUTURE_SCORE_DATE",
                    severity=ValidationSeverity.MEDIUM,
                    message=f"미래 날짜 기록: {run.classifier} ({score_date.isoformat()})",
                    field="sd",
                    value=score_date.isoformat()
                ))

            if run.is_major_match:
                continue
            same_day[(run.division, run.classifier, score_date)] += 1

        for (division, classifier, score_date), count in same_day.items():
            if count > 1:
                warnings.append(ValidationError(
                    error_type="DUPLICATE_SAME_DAY",
                    severity=ValidationSeverity.MEDIUM,
                    message=f"같은 날 같은 스테이지 기록 {count}건: {division} {classifier}",
                    field="classifier",
                    value=classifier,
                    suggestion="중복 입력인지 확인하세요 (최고 기록만 반영됨)"
                ))

        return ValidationResult(
            is_valid=True,
            warnings=warnings,
            pass_rate=1.0,
            validated_at=datetime.now()
        )


def build_runs(records: List[Dict[str, Any]]) -> Tuple[List[ClassifierRun], ValidationResult]:
    """
    원본 기록 → 정규화 → 검증 → ClassifierRun 목록

    유효하지 않은 기록은 제외하고 오류는 결과에 모은다.
    """
    validator = TechnicalValidator()
    runs = []
    all_errors = []
    all_warnings = []

    for i, record in enumerate(records):
        normalized = normalize_run_record(record)
        result = validator.validate_run(normalized)
        all_warnings.extend(result.warnings)

        if not result.is_valid:
            for error in result.errors:
                error.message = f"[Record {i}] {error.message}"
                all_errors.append(error)
            logger.debug(f"기록 제외 [Record {i}]: {[e.message for e in result.errors]}")
            continue

        runs.append(ClassifierRunSchema(**normalized).to_run())

    return runs, ValidationResult(
        is_valid=len(all_errors) == 0,
        errors=all_errors,
        warnings=all_warnings,
        pass_rate=len(runs) / len(records) if records else 0.0,
        validated_at=datetime.now()
    )
