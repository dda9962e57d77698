"""Tests for the lyrics repositories and the metadata reader."""

import json
import threading

import pytest

from singsync.models.lyrics import LyricsCandidate, LyricsResult, TimedLine
from singsync.services.storage import FileLyricsRepository, InMemoryLyricsRepository, MetadataReader


def _result(media_id: str = "vid1") -> LyricsResult:
    candidate = LyricsCandidate(
        id="captions_vtt",
        label="YouTube captions",
        provenance="captions",
        mode="timed",
        lines=[TimedLine(time_seconds=1.0, text="사랑해")],
        sync_method="native",
        score=113,
    )
    return LyricsResult.from_candidates(media_id, [candidate])


class TestFileLyricsRepository:
    @pytest.mark.asyncio
    async def test_put_then_get(self, tmp_path):
        repo = FileLyricsRepository(tmp_path)
        await repo.put(_result())

        loaded = await repo.get("vid1")

        assert loaded == _result()
        raw = json.loads((tmp_path / "vid1" / "lyrics.json").read_text(encoding="utf-8"))
        assert raw["mediaId"] == "vid1"
        assert raw["selectedCandidateId"] == "captions_vtt"
        assert raw["lines"][0] == {"timeSeconds": 1.0, "text": "사랑해"}

    @pytest.mark.asyncio
    async def test_put_overwrites(self, tmp_path):
        repo = FileLyricsRepository(tmp_path)
        await repo.put(_result())
        await repo.put(LyricsResult.none("vid1"))
        loaded = await repo.get("vid1")
        assert loaded is not None
        assert loaded.provenance == "none"

    @pytest.mark.asyncio
    async def test_missing_is_miss(self, tmp_path):
        assert await FileLyricsRepository(tmp_path).get("nothing") is None

    @pytest.mark.asyncio
    async def test_malformed_is_miss(self, tmp_path):
        (tmp_path / "vid1").mkdir()
        (tmp_path / "vid1" / "lyrics.json").write_text("{broken", encoding="utf-8")
        assert await FileLyricsRepository(tmp_path).get("vid1") is None

    @pytest.mark.asyncio
    async def test_number_too_large_for_float_drops_line(self, tmp_path):
        document = _result().model_dump(by_alias=True)
        document["lines"].append({"timeSeconds": 10 ** 400, "text": "overflow"})
        (tmp_path / "vid1").mkdir()
        (tmp_path / "vid1" / "lyrics.json").write_text(json.dumps(document), encoding="utf-8")

        loaded = await FileLyricsRepository(tmp_path).get("vid1")

        assert loaded is not None
        assert [line.text for line in loaded.lines] == ["사랑해"]

    @pytest.mark.asyncio
    async def test_integer_beyond_parser_limit_is_miss(self, tmp_path):
        (tmp_path / "vid1").mkdir()
        (tmp_path / "vid1" / "lyrics.json").write_text(
            '{"mediaId": "vid1", "lines": [{"timeSeconds": ' + "9" * 5000 + ', "text": "x"}]}',
            encoding="utf-8",
        )
        assert await FileLyricsRepository(tmp_path).get("vid1") is None

    @pytest.mark.asyncio
    async def test_other_media_id_is_miss(self, tmp_path):
        repo = FileLyricsRepository(tmp_path)
        await repo.put(_result("other"))
        (tmp_path / "vid1").mkdir()
        (tmp_path / "other" / "lyrics.json").rename(tmp_path / "vid1" / "lyrics.json")
        assert await repo.get("vid1") is None


class TestInMemoryLyricsRepository:
    @pytest.mark.asyncio
    async def test_put_get(self):
        repo = InMemoryLyricsRepository()
        assert await repo.get("vid1") is None
        await repo.put(_result())
        assert (await repo.get("vid1")) == _result()

    def test_thread_safety(self):
        """Verify concurrent access doesn't corrupt state."""
        import asyncio

        repo = InMemoryLyricsRepository()
        errors: list[Exception] = []

        def writer(prefix: str):
            try:
                for i in range(50):
                    asyncio.run(repo.put(_result(f"{prefix}_{i}")))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(f"t{t}",)) for t in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 0
        for t in range(4):
            for i in range(50):
                assert asyncio.run(repo.get(f"t{t}_{i}")) is not None


class TestMetadataReader:
    @pytest.mark.asyncio
    async def test_reads_fields(self, tmp_path):
        (tmp_path / "vid1").mkdir()
        (tmp_path / "vid1" / "meta.json").write_text(
            json.dumps({"title": "봄날", "channelTitle": "BANGTANTV", "extra": 1}), encoding="utf-8",
        )
        meta = await MetadataReader(tmp_path).read("vid1")
        assert meta.title == "봄날"
        assert meta.channel_title == "BANGTANTV"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        meta = await MetadataReader(tmp_path).read("vid1")
        assert (meta.title, meta.channel_title) == ("", "")

    @pytest.mark.asyncio
    async def test_wrong_types_and_malformed(self, tmp_path):
        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "meta.json").write_text(json.dumps({"title": 5, "channelTitle": None}))
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "meta.json").write_text("[not an object")
        reader = MetadataReader(tmp_path)
        assert (await reader.read("a")).title == ""
        assert (await reader.read("b")).channel_title == ""

    @pytest.mark.asyncio
    async def test_integer_beyond_parser_limit(self, tmp_path):
        (tmp_path / "vid1").mkdir()
        (tmp_path / "vid1" / "meta.json").write_text('{"title": ' + "1" * 5000 + "}", encoding="utf-8")
        meta = await MetadataReader(tmp_path).read("vid1")
        assert (meta.title, meta.channel_title) == ("", "")
