from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from singsync.config import settings
from singsync.api import lyrics


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    # Ensure the per-media cache root exists on startup
    settings.cache_root.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(
    title="SingSync Lyrics API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(lyrics.router, prefix="/api/lyrics", tags=["lyrics"])


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
