"""
데이터 파이프라인 패키지

클래시파이어 기록 처리 과정:
- Stage 1: Normalization (키/디비전/출처/날짜 정규화)
- Stage 2: Technical Validation (기술적 검증)
- Stage 3: Business Logic Validation (비즈니스 로직 검증)
"""

from .schemas import (
    ClassifierRunSchema,
    ValidationResult,
    ValidationError,
    ValidationSeverity,
)
from .normalizer import (
    normalize_division,
    normalize_source,
    normalize_run_record,
    parse_score_date,
)
from .validators import TechnicalValidator, BusinessValidator, build_runs

__all__ = [
    # Schemas
    "ClassifierRunSchema",
    "ValidationResult",
    "ValidationError",
    "ValidationSeverity",
    # Normalizer
    "normalize_division",
    "normalize_source",
    "normalize_run_record",
    "parse_score_date",
    # Validators
    "TechnicalValidator",
    "BusinessValidator",
    "build_runs",
]
