# menuvision/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from menuvision.app.config import settings
from menuvision.app.routers.menu import router as menu_router
from menuvision.app.routers.photos import router as photos_router
from menuvision.services import pipeline_queue

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

app = FastAPI(title="MenuVision API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(menu_router)
app.include_router(photos_router)


@app.on_event("startup")
async def startup() -> None:
    pipeline_queue.configure(settings.PIPELINE_WORKERS, settings.PIPELINE_QUEUE_SIZE)
    await pipeline_queue.start_worker()


@app.on_event("shutdown")
async def shutdown() -> None:
    await pipeline_queue.stop_worker()


@app.get("/health")
def health():
    return {"ok": True}
