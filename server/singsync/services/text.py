"""Text normalisation shared by every parser and by fingerprinting."""

import re

_HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_ANNOTATION_RE = re.compile(r"^\[[^\]]+\]$")
# \w minus underscore: Unicode letters and digits
_NON_WORD_RE = re.compile(r"[^\w\s]|_")

FINGERPRINT_LENGTH = 2400


def decode_html_entities(text: str) -> str:
    for entity, replacement in _HTML_ENTITIES:
        text = text.replace(entity, replacement)
    return text


def clean_line(text: str) -> str:
    """Decode entities, drop markup tags and collapse whitespace."""
    text = _TAG_RE.sub(" ", decode_html_entities(text))
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_plain_text(text: str) -> str:
    """Normalise line endings and squeeze runs of blank lines to one."""
    text = text.replace("\r", "")
    return _BLANK_RUN_RE.sub("\n\n", text).strip()


def split_plain_text(text: str) -> list[str]:
    """Split plain lyrics into cleaned, non-empty lines.

    Bracket-only annotations such as ``[Chorus]`` are discarded.
    """
    lines = (clean_line(raw) for raw in normalize_plain_text(text).split("\n"))
    return [line for line in lines if line and not _ANNOTATION_RE.match(line)]


def fingerprint(text: str) -> str:
    """Lowercased letters/digits-only digest used to spot near-duplicates."""
    text = _NON_WORD_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()[:FINGERPRINT_LENGTH]
