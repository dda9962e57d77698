"""Tests for text normalisation and fingerprinting."""

from singsync.services.text import (
    FINGERPRINT_LENGTH,
    clean_line,
    fingerprint,
    normalize_plain_text,
    split_plain_text,
)


class TestCleanLine:
    def test_strips_tags_and_entities(self):
        assert clean_line("<c>Hello</c> &amp; <i>goodbye</i>") == "Hello & goodbye"

    def test_collapses_whitespace(self):
        assert clean_line("  a \t b\n c  ") == "a b c"

    def test_nbsp_entity(self):
        assert clean_line("one&nbsp;two") == "one two"

    def test_empty(self):
        assert clean_line("<br>") == ""


class TestPlainText:
    def test_normalize_line_endings_and_blank_runs(self):
        assert normalize_plain_text("a\r\nb\n\n\n\nc\n") == "a\nb\n\nc"

    def test_split_drops_empty_and_annotations(self):
        raw = "[Verse 1]\nFirst line\n\n\n\nSecond  line\n[Chorus]\n<b>Third</b>"
        assert split_plain_text(raw) == ["First line", "Second line", "Third"]

    def test_split_keeps_lines_with_inline_brackets(self):
        assert split_plain_text("[x] not only a tag") == ["[x] not only a tag"]


class TestFingerprint:
    def test_ignores_case_and_punctuation(self):
        assert fingerprint("Hello, World!") == fingerprint("hello world")

    def test_keeps_non_latin_letters(self):
        assert fingerprint("안녕, 세상!") == "안녕 세상"

    def test_underscore_is_stripped(self):
        assert fingerprint("a_b") == "a b"

    def test_truncated(self):
        assert len(fingerprint("a" * (FINGERPRINT_LENGTH + 100))) == FINGERPRINT_LENGTH

    def test_empty_text(self):
        assert fingerprint("!!! ...") == ""
