import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


Provenance = Literal["captions", "catalog", "catalog_aligned", "transcription", "none"]
LyricsMode = Literal["timed", "plain"]
SyncMethod = Literal["native", "ai", "none"]
ScriptType = Literal["latin", "korean", "japanese", "cyrillic", "mixed", "unknown"]

_PROVENANCES: frozenset[str] = frozenset(
    {"captions", "catalog", "catalog_aligned", "transcription", "none"}
)
_SYNC_METHODS: frozenset[str] = frozenset({"native", "ai", "none"})

NONE_CANDIDATE_ID = "none"


class TimedLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=_to_camel)

    time_seconds: float = Field(ge=0)
    text: str


class LyricsCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=_to_camel)

    id: str
    label: str
    provenance: Provenance
    mode: LyricsMode
    lines: list[TimedLine] = Field(default_factory=list)
    plain_text: str | None = None
    sync_method: SyncMethod = "none"
    score: float = 0

    def full_text(self) -> str:
        """Timed line text followed by plain text, used for script checks."""
        timed = " ".join(line.text for line in self.lines)
        return f"{timed} {self.plain_text or ''}".strip()


class LyricsResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=_to_camel)

    media_id: str
    provenance: Provenance
    mode: LyricsMode
    lines: list[TimedLine] = Field(default_factory=list)
    plain_text: str | None = None
    sync_method: SyncMethod = "none"
    selected_candidate_id: str = NONE_CANDIDATE_ID
    candidates: list[LyricsCandidate] = Field(default_factory=list)

    def full_text(self) -> str:
        timed = " ".join(line.text for line in self.lines)
        return f"{timed} {self.plain_text or ''}".strip()

    @classmethod
    def none(cls, media_id: str) -> "LyricsResult":
        """The fixed "no lyrics" result."""
        placeholder = LyricsCandidate(
            id=NONE_CANDIDATE_ID,
            label="No lyrics",
            provenance="none",
            mode="plain",
            lines=[],
            plain_text="",
            sync_method="none",
            score=0,
        )
        return cls(
            media_id=media_id,
            provenance="none",
            mode="plain",
            lines=[],
            plain_text="",
            sync_method="none",
            selected_candidate_id=NONE_CANDIDATE_ID,
            candidates=[placeholder],
        )

    @classmethod
    def from_candidates(cls, media_id: str, candidates: list[LyricsCandidate]) -> "LyricsResult":
        """Build a result whose top-level fields mirror the first candidate."""
        if not candidates:
            return cls.none(media_id)
        selected = candidates[0]
        return cls(
            media_id=media_id,
            provenance=selected.provenance,
            mode=selected.mode,
            lines=list(selected.lines),
            plain_text=selected.plain_text,
            sync_method=selected.sync_method,
            selected_candidate_id=selected.id,
            candidates=candidates,
        )

    @classmethod
    def coerce(cls, raw: Any, media_id: str) -> "LyricsResult | None":
        """Tolerantly rebuild a persisted result.

        Unknown enum values fall back to safe defaults and malformed lines
        are dropped. Returns None when the document does not belong to
        ``media_id`` or is not shaped like a result at all.
        """
        if not isinstance(raw, dict):
            return None
        if raw.get("mediaId") != media_id or not isinstance(raw.get("lines"), list):
            return None

        candidates = []
        for item in raw.get("candidates") or []:
            candidate = _coerce_candidate(item)
            if candidate is not None:
                candidates.append(candidate)

        selected = raw.get("selectedCandidateId")
        return cls(
            media_id=media_id,
            provenance=_coerce_provenance(raw.get("provenance")),
            mode=_coerce_mode(raw.get("mode")),
            lines=_coerce_lines(raw["lines"]),
            plain_text=raw["plainText"] if isinstance(raw.get("plainText"), str) else None,
            sync_method=_coerce_sync_method(raw.get("syncMethod")),
            selected_candidate_id=selected if isinstance(selected, str) else NONE_CANDIDATE_ID,
            candidates=candidates,
        )


class TrackMeta(BaseModel):
    """Weak metadata written next to the media by the search/download layer."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=_to_camel)

    title: str = ""
    channel_title: str = ""


class CatalogMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=_to_camel)

    track_name: str = ""
    artist_name: str = ""
    plain_text: str | None = None
    synced_text: str | None = None
    duration_seconds: float | None = None
    match_score: float = 0
    label: str = ""
    direct_hit: bool = False


def _coerce_provenance(value: Any) -> Provenance:
    return value if value in _PROVENANCES else "none"


def _coerce_mode(value: Any) -> LyricsMode:
    return "plain" if value == "plain" else "timed"


def _coerce_sync_method(value: Any) -> SyncMethod:
    return value if value in _SYNC_METHODS else "none"


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _coerce_lines(raw_lines: list[Any]) -> list[TimedLine]:
    lines: list[TimedLine] = []
    for item in raw_lines:
        if not isinstance(item, dict) or not isinstance(item.get("text"), str):
            continue
        seconds = _coerce_float(item.get("timeSeconds"))
        if seconds is None or seconds < 0:
            continue
        lines.append(TimedLine(time_seconds=seconds, text=item["text"]))
    return lines


def _coerce_candidate(item: Any) -> LyricsCandidate | None:
    if not isinstance(item, dict):
        return None
    if not isinstance(item.get("id"), str) or not isinstance(item.get("label"), str):
        return None
    if not isinstance(item.get("lines"), list):
        return None

    score = _coerce_float(item.get("score"))
    return LyricsCandidate(
        id=item["id"],
        label=item["label"],
        provenance=_coerce_provenance(item.get("provenance")),
        mode=_coerce_mode(item.get("mode")),
        lines=_coerce_lines(item["lines"]),
        plain_text=item["plainText"] if isinstance(item.get("plainText"), str) else None,
        sync_method=_coerce_sync_method(item.get("syncMethod")),
        score=score if score is not None else 0,
    )
