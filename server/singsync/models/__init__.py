from singsync.models.lyrics import (
    CatalogMatch,
    LyricsCandidate,
    LyricsMode,
    LyricsResult,
    Provenance,
    ScriptType,
    SyncMethod,
    TimedLine,
    TrackMeta,
)

__all__ = [
    "CatalogMatch",
    "LyricsCandidate",
    "LyricsMode",
    "LyricsResult",
    "Provenance",
    "ScriptType",
    "SyncMethod",
    "TimedLine",
    "TrackMeta",
]
