"""Candidate reliability scoring and near-duplicate reduction."""

from singsync.models.lyrics import LyricsCandidate, ScriptType
from singsync.services.script import is_script_compatible
from singsync.services.text import fingerprint

DEFAULT_TOP_LIMIT = 3

NATIVE_SYNC_BONUS = 7
AI_SYNC_BONUS = 2
SCRIPT_MATCH_BONUS = 8


_PROVENANCE_BASE: dict[str, int] = {
    "captions": 96,
    "catalog": 90,
    "catalog_aligned": 82,
    "transcription": 48,
    "none": 0,
}
CATALOG_PLAIN_BASE = 84


def provenance_base(candidate: LyricsCandidate) -> int:
    """Curated internet sources and captions first, transcription last."""
    if candidate.provenance == "catalog" and candidate.mode == "plain":
        return CATALOG_PLAIN_BASE
    return _PROVENANCE_BASE[candidate.provenance]


def density_bonus(candidate: LyricsCandidate) -> int:
    if candidate.mode == "timed":
        return min(16, len(candidate.lines) // 6)
    return min(10, len(candidate.plain_text or "") // 120)


def score_candidate(candidate: LyricsCandidate, expected: ScriptType) -> float:
    score = provenance_base(candidate)

    if candidate.sync_method == "native":
        score += NATIVE_SYNC_BONUS
    elif candidate.sync_method == "ai":
        score += AI_SYNC_BONUS

    score += density_bonus(candidate)

    # Re-checked here even though sources already filter by script
    text = candidate.full_text()
    if text and is_script_compatible(text, expected):
        score += SCRIPT_MATCH_BONUS
    return score


def candidate_fingerprint(candidate: LyricsCandidate) -> str:
    if candidate.mode == "timed":
        return fingerprint("\n".join(line.text for line in candidate.lines))
    return fingerprint(candidate.plain_text or "")


def score_all(candidates: list[LyricsCandidate], expected: ScriptType) -> list[LyricsCandidate]:
    """Return scored copies sorted best-first. The sort is stable."""
    scored = [c.model_copy(update={"score": score_candidate(c, expected)}) for c in candidates]
    return sorted(scored, key=lambda c: c.score, reverse=True)


def pick_top_candidates(scored: list[LyricsCandidate], limit: int = DEFAULT_TOP_LIMIT) -> list[LyricsCandidate]:
    """Keep the best distinct candidates; empty fingerprints never survive."""
    seen: set[str] = set()
    out: list[LyricsCandidate] = []
    for candidate in sorted(scored, key=lambda c: c.score, reverse=True):
        digest = candidate_fingerprint(candidate)
        if not digest or digest in seen:
            continue
        seen.add(digest)
        out.append(candidate)
        if len(out) >= limit:
            break
    return out
