"""Unit tests for the translation cache and Translator."""

import asyncio
import json
import threading

import pytest
from conftest import VALID_HAIKU, FakeTextClient, make_item

from haiku_feed.models import Haiku
from haiku_feed.translation import TranslationCache, Translator, text_id

RUSSIAN_HAIKU = "холодный ветер\nснег падает на тихий город\nждём весну"


@pytest.fixture
def cache(tmp_path):
    return TranslationCache(tmp_path / "cache" / "translations.json")


class TestTranslationCache:
    """Unit tests for the JSON translation cache."""

    def test_text_id_is_md5_hex(self):
        assert text_id("hello") == "5d41402abc4b2a76b9719d911017c592"
        assert text_id(VALID_HAIKU) == text_id(VALID_HAIKU)
        assert text_id("a") != text_id("b")

    def test_missing_file_reads_empty(self, cache):
        assert cache.load_all() == {}
        assert cache.get("anything") is None
        assert not cache.exists("anything")

    def test_put_then_get(self, cache):
        cache.put("key-1", RUSSIAN_HAIKU)

        assert cache.get("key-1") == RUSSIAN_HAIKU
        assert cache.exists("key-1")
        assert cache.path.exists()

    def test_file_is_readable_utf8_json(self, cache):
        cache.put("key-1", RUSSIAN_HAIKU)

        raw = cache.path.read_text(encoding="utf-8")

        assert "холодный" in raw
        assert json.loads(raw) == {"key-1": RUSSIAN_HAIKU}

    def test_put_preserves_existing_entries(self, cache):
        cache.put("key-1", "one")
        cache.put("key-2", "two")

        assert cache.load_all() == {"key-1": "one", "key-2": "two"}

    def test_corrupt_file_reads_empty(self, cache):
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text("{not json", encoding="utf-8")

        assert cache.load_all() == {}
        cache.put("key-1", "one")
        assert cache.load_all() == {"key-1": "one"}

    def test_non_object_json_reads_empty(self, cache):
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text("[1, 2, 3]", encoding="utf-8")

        assert cache.load_all() == {}

    def test_empty_translation_counts_as_missing(self, cache):
        cache.put("key-1", "")

        assert cache.get("key-1") is None
        assert not cache.exists("key-1")


class TestTranslator:
    """Unit tests for Translator."""

    def test_translate_builds_prompt(self, cache):
        client = FakeTextClient(default=RUSSIAN_HAIKU)
        translator = Translator(client, cache)

        result = asyncio.run(translator.translate(VALID_HAIKU))

        assert result == RUSSIAN_HAIKU
        assert "Russian haiku" in client.prompts[0]
        assert client.prompts[0].endswith(VALID_HAIKU)

    def test_translate_returns_none_on_error(self, cache):
        translator = Translator(FakeTextClient(error=RuntimeError("throttled")), cache)

        assert asyncio.run(translator.translate(VALID_HAIKU)) is None

    def test_translate_returns_none_on_empty_output(self, cache):
        translator = Translator(FakeTextClient(default=""), cache)

        assert asyncio.run(translator.translate(VALID_HAIKU)) is None

    def test_translate_cached_miss_then_hit(self, cache):
        client = FakeTextClient(default=RUSSIAN_HAIKU)
        translator = Translator(client, cache)

        first = asyncio.run(translator.translate_cached(VALID_HAIKU))
        second = asyncio.run(translator.translate_cached(VALID_HAIKU))

        assert first == second == RUSSIAN_HAIKU
        assert len(client.prompts) == 1
        assert cache.get(text_id(VALID_HAIKU)) == RUSSIAN_HAIKU

    def test_failed_translation_is_not_cached(self, cache):
        translator = Translator(FakeTextClient(default=None), cache)

        assert asyncio.run(translator.translate_cached(VALID_HAIKU)) is None
        assert cache.load_all() == {}

    def test_lookup_returns_only_hits(self, cache):
        cache.put(text_id("first"), "первый")
        translator = Translator(FakeTextClient(), cache)

        assert asyncio.run(translator.lookup(["first", "second"])) == {"first": "первый"}
        assert asyncio.run(translator.lookup([])) == {}

    def test_ensure_translated_skips_cached_text(self, cache):
        haiku = Haiku.from_item(make_item("g"), VALID_HAIKU)
        cache.put(text_id(VALID_HAIKU), RUSSIAN_HAIKU)
        client = FakeTextClient(default="something else")
        translator = Translator(client, cache)

        asyncio.run(translator.ensure_translated(haiku))

        assert client.prompts == []
        assert cache.get(text_id(VALID_HAIKU)) == RUSSIAN_HAIKU

    def test_ensure_all_translated(self, cache):
        haikus = [
            Haiku.from_item(make_item("a"), "first\nhaiku\ntext"),
            Haiku.from_item(make_item("b"), "second\nhaiku\ntext"),
        ]
        client = FakeTextClient(default=RUSSIAN_HAIKU)
        translator = Translator(client, cache)

        asyncio.run(translator.ensure_all_translated(haikus))

        assert len(client.prompts) == 2
        found = asyncio.run(translator.lookup([h.text for h in haikus]))
        assert set(found) == {h.text for h in haikus}

    def test_ensure_translated_swallows_failures(self, cache):
        haiku = Haiku.from_item(make_item("g"), VALID_HAIKU)
        translator = Translator(FakeTextClient(error=RuntimeError("down")), cache)

        asyncio.run(translator.ensure_translated(haiku))

        assert cache.load_all() == {}

    def test_cache_file_io_runs_off_the_event_loop_thread(self, cache):
        """Every cache read and write happens in a worker thread."""
        loop_thread = threading.get_ident()
        io_threads = []
        original_load, original_save = cache.load_all, cache.save_all

        def recording_load():
            io_threads.append(threading.get_ident())
            return original_load()

        def recording_save(translations):
            io_threads.append(threading.get_ident())
            original_save(translations)

        cache.load_all = recording_load
        cache.save_all = recording_save
        haiku = Haiku.from_item(make_item("g"), VALID_HAIKU)
        translator = Translator(FakeTextClient(default=RUSSIAN_HAIKU), cache)

        async def run():
            await translator.ensure_translated(haiku)
            await translator.translate_cached(VALID_HAIKU)
            return await translator.lookup([VALID_HAIKU])

        found = asyncio.run(run())

        assert found == {VALID_HAIKU: RUSSIAN_HAIKU}
        assert len(io_threads) >= 4
        assert loop_thread not in io_threads
