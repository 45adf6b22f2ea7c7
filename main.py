"""
USPSA 분류 계산기 메인
"""
import argparse
import sys
from pathlib import Path

from loguru import logger

from app.config import get_settings
from classification.calculator import ClassificationCalculator


def setup_logging(level: str = "INFO", log_dir: str = "logs"):
    """로깅 설정"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level
    )
    logger.add(
        str(Path(log_dir) / "classification_{time:YYYY-MM-DD}.log"),
        rotation="1 day",
        retention="30 days",
        level="DEBUG"
    )


def cmd_classify(args) -> int:
    """선수 1명 분류 계산"""
    calculator = ClassificationCalculator(args.data)
    classification = calculator.calculate_member(args.member)
    if not classification:
        logger.error(f"선수를 찾을 수 없습니다: {args.member}")
        return 1

    calculator.print_classification_summary(classification)
    return 0


def cmd_export(args) -> int:
    """전체 선수 분류 내보내기"""
    calculator = ClassificationCalculator(args.data)
    calculator.export_classifications(args.output)
    return 0


def cmd_serve(args) -> int:
    """API 서버 실행"""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.server:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower()
    )
    return 0


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="USPSA 분류 계산기")
    parser.add_argument("--data", type=str, default=settings.data_file, help="데이터 파일")
    parser.add_argument("--log-level", type=str, default=settings.log_level, help="로그 레벨")
    subparsers = parser.add_subparsers(dest="command", required=True)

    classify_parser = subparsers.add_parser("classify", help="선수 분류 계산")
    classify_parser.add_argument("member", help="회원번호")
    classify_parser.set_defaults(func=cmd_classify)

    export_parser = subparsers.add_parser("export", help="전체 분류 JSON 내보내기")
    export_parser.add_argument("--output", type=str, default="data/classifications.json", help="출력 파일")
    export_parser.set_defaults(func=cmd_export)

    serve_parser = subparsers.add_parser("serve", help="API 서버 실행")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    setup_logging(args.log_level, settings.log_dir)

    try:
        sys.exit(args.func(args))
    except FileNotFoundError as e:
        logger.error(f"데이터 파일을 찾을 수 없습니다: {e.filename}")
        sys.exit(1)


if __name__ == "__main__":
    main()
