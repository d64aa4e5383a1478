import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.core.config import settings
from backend.app.routers import cost, judge, match_history, payment, replay, video
from backend.app.services.judge import judge_service
from backend.app.services.riot_api import riot_client

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="League of Legends dispute verdicts from case descriptions, clips and replays",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(judge.router)
app.include_router(replay.router)
app.include_router(video.router)
app.include_router(cost.router)
app.include_router(payment.router)
app.include_router(match_history.router)


@app.get("/")
async def root():
    return {"message": "LoL Court API", "docs": "/docs"}


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "llm_configured": judge_service.llm_configured,
        "riot_configured": riot_client.configured,
    }


@app.on_event("startup")
async def startup():
    if settings.REWARD_TABLE_PATH and settings.REWARD_TABLE_PATH.exists():
        judge_service.table.load(settings.REWARD_TABLE_PATH)
    logger.info(f"{settings.APP_NAME} started (LLM {'on' if judge_service.llm_configured else 'off'})")
