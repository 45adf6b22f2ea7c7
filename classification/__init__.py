"""
USPSA 분류 시스템

클래시파이어 기록 기반 디비전별 등급 계산 모듈
"""
from .models import (
    ClassifierRun,
    ClassificationState,
    MAJOR_MATCH_SOURCE,
)
from .divisions import (
    DIVISIONS,
    division_name,
    map_divisions,
)
from .calculator import (
    ClassificationCalculator,
    ShooterClassification,
    DivisionClassification,
    calculate_uspsa_classification,
    class_for_percent,
    classification_rank,
    highest_classification,
    get_div_to_class,
    can_be_inserted,
    add_to_cur_window,
    percent_for_div_window,
    CLASSIFICATION_RANKS,
)

__all__ = [
    "ClassifierRun",
    "ClassificationState",
    "MAJOR_MATCH_SOURCE",
    "DIVISIONS",
    "division_name",
    "map_divisions",
    "ClassificationCalculator",
    "ShooterClassification",
    "DivisionClassification",
    "calculate_uspsa_classification",
    "class_for_percent",
    "classification_rank",
    "highest_classification",
    "get_div_to_class",
    "can_be_inserted",
    "add_to_cur_window",
    "percent_for_div_window",
    "CLASSIFICATION_RANKS",
]
