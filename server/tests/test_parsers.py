"""Tests for the LRC, WebVTT and transcription-segment decoders."""

import json
import math

import pytest

from singsync.models.lyrics import TimedLine
from singsync.services.parsers import (
    parse_lrc,
    parse_lrc_timestamp,
    parse_segments,
    parse_transcription_segments,
    parse_vtt,
    parse_vtt_timestamp,
    serialize_lrc,
)


def _pairs(lines: list[TimedLine]) -> list[tuple[float, str]]:
    return [(round(line.time_seconds, 3), line.text) for line in lines]


class TestTimestamps:
    def test_lrc_timestamp(self):
        assert parse_lrc_timestamp("01:02.50") == pytest.approx(62.5)
        assert parse_lrc_timestamp("00:07") == 7

    @pytest.mark.parametrize("raw, expected", [("00:01.5", 1.5), ("00:01.50", 1.5), ("00:01.500", 1.5), ("00:01.05", 1.05)])
    def test_lrc_timestamp_fraction_digits(self, raw: str, expected: float):
        assert parse_lrc_timestamp(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["", "ar:Artist", "1:2:3", "aa:bb", "01:02.x"])
    def test_lrc_timestamp_malformed_is_nan(self, raw: str):
        assert math.isnan(parse_lrc_timestamp(raw))

    def test_vtt_timestamp_hours(self):
        assert parse_vtt_timestamp("01:02:03.500") == pytest.approx(3723.5)

    def test_vtt_timestamp_minutes(self):
        assert parse_vtt_timestamp("02:03.250") == pytest.approx(123.25)

    def test_vtt_timestamp_comma(self):
        assert parse_vtt_timestamp("00:00:01,500") == pytest.approx(1.5)

    @pytest.mark.parametrize("raw", ["", "12", "aa:bb", "1:2:3:4", "nan:00"])
    def test_vtt_timestamp_malformed_is_nan(self, raw: str):
        assert math.isnan(parse_vtt_timestamp(raw))


class TestParseLrc:
    def test_basic(self):
        content = "[ar:Someone]\n[00:01.00]First\n[00:05.50]Second\n"
        assert _pairs(parse_lrc(content)) == [(1.0, "First"), (5.5, "Second")]

    def test_multiple_tags_repeat_text(self):
        content = "[00:10.00][00:30.00]Chorus\n[00:20.00]Verse"
        assert _pairs(parse_lrc(content)) == [(10.0, "Chorus"), (20.0, "Verse"), (30.0, "Chorus")]

    def test_adjacent_duplicates_within_window_dropped(self):
        content = "[00:01.00]Hey\n[00:01.50]Hey\n[00:03.00]Hey"
        assert _pairs(parse_lrc(content)) == [(1.0, "Hey"), (3.0, "Hey")]

    def test_sorted_by_time(self):
        content = "[00:09.00]Late\n[00:02.00]Early"
        assert [line.text for line in parse_lrc(content)] == ["Early", "Late"]

    def test_lines_without_text_or_tags_skipped(self):
        content = "plain words\n[00:01.00]\n[00:02.00]  <i>Real</i>  "
        assert _pairs(parse_lrc(content)) == [(2.0, "Real")]

    def test_round_trip(self):
        lines = [
            TimedLine(time_seconds=0.0, text="Intro"),
            TimedLine(time_seconds=12.34, text="Line one"),
            TimedLine(time_seconds=75.5, text="Line two"),
            TimedLine(time_seconds=3601.99, text="Very late"),
        ]
        assert _pairs(parse_lrc(serialize_lrc(lines))) == _pairs(lines)

    def test_serialize_format(self):
        assert serialize_lrc([TimedLine(time_seconds=62.5, text="x")]) == "[01:02.50]x"


class TestParseVtt:
    def test_cues(self):
        content = (
            "WEBVTT\nKind: captions\nLanguage: en\n\n"
            "1\n00:00:01.000 --> 00:00:03.000 align:start position:0%\nHello <c>there</c>\nfriend\n\n"
            "00:00:04.000 --> 00:00:06.000\nSecond cue\n"
        )
        assert _pairs(parse_vtt(content)) == [(1.0, "Hello there friend"), (4.0, "Second cue")]

    def test_skips_note_and_style_blocks(self):
        content = "WEBVTT\n\nNOTE a comment\n\nSTYLE\n::cue {}\n\n00:01.000 --> 00:02.000\nText\n"
        assert _pairs(parse_vtt(content)) == [(1.0, "Text")]

    def test_rolling_auto_caption_duplicates_collapse(self):
        content = (
            "WEBVTT\n\n"
            "00:00:01.000 --> 00:00:02.000\nsame words\n\n"
            "00:00:01.010 --> 00:00:02.000\nsame words\n\n"
            "00:00:05.000 --> 00:00:06.000\nsame words\n"
        )
        assert _pairs(parse_vtt(content)) == [(1.0, "same words"), (5.0, "same words")]

    def test_malformed_timestamp_skipped(self):
        content = "WEBVTT\n\nxx:yy --> 00:00:02.000\nBad\n\n00:00:03.000 --> 00:00:04.000\nGood\n"
        assert _pairs(parse_vtt(content)) == [(3.0, "Good")]

    def test_empty_cue_text_skipped(self):
        content = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\n<c></c>\n"
        assert parse_vtt(content) == []

    def test_text_at_end_of_input(self):
        content = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nlast line"
        assert _pairs(parse_vtt(content)) == [(1.0, "last line")]


class TestTranscriptionSegments:
    def test_coerces_filters_and_sorts(self):
        raw = json.dumps({"segments": [
            {"start": "4.5", "text": " later "},
            {"start": 1, "text": "first"},
            {"start": -1, "text": "negative"},
            {"start": None, "text": "no start"},
            {"start": 2, "text": "   "},
            {"start": 3},
        ]})
        segments = parse_segments(raw)
        assert [(s.start, s.text) for s in segments] == [(1.0, "first"), (4.5, "later")]

    def test_malformed_json_is_empty(self):
        assert parse_segments("{not json") == []
        assert parse_segments(json.dumps([1, 2])) == []
        assert parse_segments(json.dumps({"segments": "nope"})) == []

    def test_timed_lines_dedupe_within_window(self):
        raw = json.dumps({"segments": [
            {"start": 1.0, "text": "la la"},
            {"start": 1.5, "text": "la la"},
            {"start": 2.5, "text": "la la"},
        ]})
        assert _pairs(parse_transcription_segments(raw)) == [(1.0, "la la"), (2.5, "la la")]
