"""
앱 설정
"""
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class AppSettings(BaseSettings):
    """분류 서버 설정"""

    # 데이터
    data_file: str = Field(default="data/classification_data.json", description="기록/클래시파이어 데이터 파일")
    hydrate_on_startup: bool = Field(default=True, description="시작 시 디비전별 클래시파이어 캐시 구축")

    # 페이지네이션
    page_size: int = Field(default=100, ge=1, description="기록 목록 페이지 크기")

    # 서버
    host: str = "0.0.0.0"
    port: int = 8000

    # 로깅
    log_level: str = Field(default="INFO", description="stderr 로그 레벨")
    log_dir: str = Field(default="logs", description="로그 파일 디렉토리")

    class Config:
        env_prefix = "CLASSIFICATION_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> AppSettings:
    return AppSettings()
