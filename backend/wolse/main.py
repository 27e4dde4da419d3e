import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wolse.api.router import api_router
from wolse.config import settings


def _setup_logging() -> None:
    """애플리케이션 로깅을 설정한다."""
    log_format = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
    date_format = "%H:%M:%S"
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        stream=sys.stderr,
        force=True,
    )

    # 외부 라이브러리 로그는 WARNING 이상만, 앱 로그만 상세 출력
    logging.getLogger().setLevel(logging.WARNING)
    logging.getLogger("wolse").setLevel(level)

    # httpx: 요청마다 INFO 로그가 찍히므로 debug 모드가 아니면 WARNING 이상만
    if not settings.debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)


_setup_logging()


app = FastAPI(
    title="월세 전환율 분석",
    description="국토교통부 실거래가로 시장 전월세 전환율을 역산하고, 제시받은 월세 조건의 적정성과 협상 전략을 제공합니다.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("wolse.main:app", host=settings.host, port=settings.port, reload=settings.debug)
