"""
USPSA Classification - FastAPI 웹 서버
선수 분류 계산 + 클래시파이어 기록 조회 API

데이터 소스: JSON 데이터 파일 (settings.data_file)
"""
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Response
from pydantic import BaseModel, Field
from loguru import logger

from classification.calculator import (
    ClassificationCalculator,
    calculate_uspsa_classification,
    get_div_to_class,
    highest_classification,
    state_to_dict,
    summarize_state,
)
from classification.divisions import division_codes
from data_pipeline import BusinessValidator, build_runs

from app.classifiers import (
    ClassifierCatalog,
    basic_info_for_classifier,
    filter_runs,
    multisort,
    paginate,
    recommended_hhf_by_percentile_and_percent,
)
from app.config import get_settings

# FastAPI 앱
app = FastAPI(
    title="USPSA Classification",
    description="클래시파이어 기록 기반 USPSA 디비전별 분류 계산",
    version="1.0.0"
)

# 데이터 저장소 (메모리 캐시)
_calculator: Optional[ClassificationCalculator] = None  # 분류 계산기
_catalog: ClassifierCatalog = ClassifierCatalog()  # 클래시파이어 조회
_data_source: str = "none"  # 현재 데이터 소스


# ==================== Pydantic Models ====================

class ClassificationRequest(BaseModel):
    """분류 계산 요청"""
    runs: List[Dict[str, Any]] = Field(default_factory=list, description="클래시파이어 기록 목록")
    include_window: bool = Field(default=False, description="디비전별 윈도우 포함 여부")


class DivisionClassificationEntry(BaseModel):
    """디비전별 분류 항목"""
    division: str
    division_name: str
    classification: str
    percent: float
    high_percent: float
    window_size: int


class ClassificationResponse(BaseModel):
    """분류 계산 결과"""
    member_number: Optional[str] = None
    name: Optional[str] = None
    runs_count: int
    highest_class: Optional[str]
    divisions: List[DivisionClassificationEntry]
    warnings: List[str] = []
    state: Optional[Dict[str, Any]] = None


# ==================== Data Loading ====================

def load_from_data(data: Dict[str, Any]):
    """메모리 데이터로 계산기/클래시파이어 조회 초기화"""
    global _calculator, _catalog, _data_source

    _calculator = ClassificationCalculator()
    _calculator.load_from_data(data)

    _catalog = ClassifierCatalog(
        classifiers=data.get("classifiers", []),
        runs=_calculator.runs,
        calibration=data.get("calibration", {}),
    )
    _data_source = "memory"


def load_data(data_file: Optional[str] = None) -> bool:
    """데이터 파일 로드 (실패하면 빈 상태 유지)"""
    global _data_source

    path = Path(data_file or get_settings().data_file)
    if not path.exists():
        logger.warning(f"데이터 파일 없음: {path}")
        return False

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"데이터 파일 로드 실패: {path} ({e})")
        return False

    if not isinstance(data, dict):
        logger.error(f"데이터 파일 형식 오류 (객체가 아님): {path}")
        return False

    load_from_data(data)
    _data_source = str(path)
    logger.info(f"✅ 데이터 로드 완료: {len(_calculator.runs)}개 기록, {len(_catalog.classifiers)}개 클래시파이어")
    return True


def _require_calculator() -> ClassificationCalculator:
    if not _calculator:
        raise HTTPException(status_code=503, detail="분류 데이터가 로드되지 않았습니다")
    return _calculator


# ==================== API Endpoints ====================

@app.on_event("startup")
async def startup_event():
    """서버 시작 시 데이터 로드 및 클래시파이어 캐시 구축"""
    settings = get_settings()
    if load_data(settings.data_file) and settings.hydrate_on_startup:
        _catalog.hydrate()
    logger.info("✅ 서버 시작 완료")


@app.on_event("shutdown")
async def shutdown_event():
    """서버 종료 시 정리"""
    _catalog.clear_cache()
    logger.info("서버 종료됨")


@app.get("/api/status")
async def api_status():
    """데이터 소스 상태 API"""
    return {
        "data_source": _data_source,
        "runs": len(_calculator.runs) if _calculator else 0,
        "members": len(_calculator.members) if _calculator else 0,
        "classifiers": len(_catalog.classifiers),
        "divisions": division_codes(),
    }


@app.post("/api/classification", response_model=ClassificationResponse)
async def api_calculate_classification(request: ClassificationRequest):
    """
    기록 목록으로 분류 계산

    기록은 정규화/검증 후 계산하며, 유효하지 않은 기록이 있으면 422
    """
    runs, result = build_runs(request.runs)
    if not result.is_valid:
        raise HTTPException(
            status_code=422,
            detail=[e.model_dump(mode="json") for e in result.errors]
        )

    business = BusinessValidator().validate_member_runs(runs)
    state = calculate_uspsa_classification(runs)

    return ClassificationResponse(
        runs_count=len(runs),
        highest_class=highest_classification(get_div_to_class(state)),
        divisions=[DivisionClassificationEntry(**asdict(d)) for d in summarize_state(state)],
        warnings=[w.message for w in result.warnings + business.warnings],
        state=state_to_dict(state) if request.include_window else None,
    )


@app.get("/api/classification/{member_number}", response_model=ClassificationResponse)
async def api_member_classification(member_number: str):
    """로드된 데이터 기준 선수 분류 조회"""
    calculator = _require_calculator()

    classification = calculator.calculate_member(member_number)
    if not classification:
        raise HTTPException(status_code=404, detail="선수를 찾을 수 없습니다")

    return ClassificationResponse(
        member_number=classification.member_number,
        name=classification.name,
        runs_count=classification.runs_count,
        highest_class=classification.highest_class,
        divisions=[DivisionClassificationEntry(**asdict(d)) for d in classification.divisions],
    )


@app.get("/api/classifiers")
async def api_classifiers():
    """클래시파이어 기본 정보 목록"""
    return [basic_info_for_classifier(c) for c in _catalog.classifiers]


@app.get("/api/classifiers/download/{division}")
async def api_download_division_classifiers(division: str, response: Response):
    """디비전 클래시파이어 목록 다운로드"""
    response.headers["Content-Disposition"] = f"attachment; filename=classifiers.{division}.json"
    return _catalog.classifiers_for_division(division)


@app.get("/api/classifiers/download/{division}/{number}")
async def api_download_classifier_runs(division: str, number: str, response: Response):
    """클래시파이어 전체 기록 다운로드 (레거시 기록 제외)"""
    response.headers["Content-Disposition"] = f"attachment; filename=classifiers.{division}.{number}.json"

    c = _catalog.find(number)
    if not c:
        response.status_code = 404
        return {"info": None, "runs": []}

    extended = _catalog.extended_info_for_classifier(c, division)
    return {
        "info": {**basic_info_for_classifier(c), **extended},
        "runs": _catalog.runs_for_division_classifier(
            c["classifier"], division, hhf=extended["hhf"], include_no_hf=False
        ),
    }


@app.get("/api/classifiers/{division}")
async def api_division_classifiers(division: str):
    """디비전별 클래시파이어 목록 (캐시)"""
    return _catalog.classifiers_for_division(division)


@app.get("/api/classifiers/{division}/{number}")
async def api_classifier_runs(
    division: str,
    number: str,
    response: Response,
    sort: Optional[str] = Query(None, description="정렬 필드 (쉼표 구분)"),
    order: Optional[str] = Query(None, description="정렬 방향 asc/desc (쉼표 구분)"),
    page: int = Query(1, ge=1),
    legacy: Optional[int] = Query(None, description="1이면 HF 없는 기록 포함"),
    hhf: Optional[float] = Query(None, description="과거 HHF 필터"),
    club: Optional[str] = Query(None, description="클럽 ID 필터"),
    filter_text: Optional[str] = Query(None, alias="filter", description="검색어 (클럽/회원번호/이름)"),
):
    """클래시파이어 기록 목록 + 추천 HHF"""
    c = _catalog.find(number)
    if not c:
        response.status_code = 404
        return {"info": None, "runs": []}

    extended = _catalog.extended_info_for_classifier(c, division)
    runs_unsorted = _catalog.runs_for_division_classifier(
        c["classifier"],
        division,
        hhf=extended["hhf"],
        include_no_hf=legacy == 1,
    )
    runs_unsorted = filter_runs(runs_unsorted, hhf=hhf, club=club, text=filter_text)

    runs = [
        {**run, "index": index}
        for index, run in enumerate(multisort(
            runs_unsorted,
            sort.split(",") if sort else None,
            order.split(",") if order else None,
        ))
    ]

    calibration = _catalog.calibration_for(division)
    page_size = get_settings().page_size

    return {
        "info": {
            **basic_info_for_classifier(c),
            **extended,
            "recommended_hhf1": recommended_hhf_by_percentile_and_percent(runs_unsorted, calibration.get("pGM"), 95),
            "recommended_hhf5": recommended_hhf_by_percentile_and_percent(runs_unsorted, calibration.get("pM"), 85),
            "recommended_hhf15": recommended_hhf_by_percentile_and_percent(runs_unsorted, calibration.get("pA"), 75),
        },
        "runs": paginate(runs, page, page_size),
        "runs_total": len(runs),
        "runs_page": page,
    }


# ==================== 서버 실행 ====================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.server:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level="info"
    )
