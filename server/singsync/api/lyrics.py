import logging
import re

from fastapi import APIRouter, HTTPException, Query

from singsync.models.lyrics import LyricsResult
from singsync.services.lyrics_service import KeyedLocks, LyricsService

router = APIRouter()
logger = logging.getLogger(__name__)

# Shared across requests so concurrent calls for one id run the pipeline once
resolution_locks = KeyedLocks()

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@router.get("")
async def get_lyrics(video_id: str = Query("", alias="videoId")) -> dict:
    """Resolve lyrics for a video. Absence of lyrics is a normal result, not an error."""
    video_id = video_id.strip()
    if not video_id:
        raise HTTPException(status_code=400, detail="videoId is required")
    if not _VIDEO_ID_RE.match(video_id):
        raise HTTPException(status_code=400, detail="videoId is malformed")

    service: LyricsService | None = None
    try:
        service = LyricsService(locks=resolution_locks)
        result = await service.resolve_lyrics(video_id)
    except Exception:
        logger.exception("Lyrics endpoint failed for %s", video_id)
        result = LyricsResult.none(video_id)
    finally:
        if service is not None:
            await service.aclose()

    return result.model_dump(by_alias=True)
