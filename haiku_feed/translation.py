"""Haiku translation and the on-disk translation cache."""

import asyncio
import hashlib
import json
from pathlib import Path

from .bedrock import BedrockTextClient
from .logging_config import create_execution_logger
from .models import Haiku

TRANSLATION_PROMPT = """
Translate this English haiku into a {language} haiku. Focus on preserving the core meaning and imagery, not word-for-word translation.

Important guidelines:
1. Capture the essence of the original haiku's idea and emotion
2. Create a proper {language} haiku with poetic quality
3. Maintain the traditional three-line structure
4. The result should feel natural in {language}, not like a direct translation
5. Prioritize poetic beauty and meaning over literal accuracy

Return ONLY the translated {language} haiku with no additional comments.

English haiku:
{text}"""


def text_id(text: str) -> str:
    """Return the cache key for a text: its MD5 hex digest."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


class TranslationCache:
    """JSON file mapping text ids to translations.

    Methods block on file IO; Translator calls them from worker threads.

    The whole file is read on every lookup and rewritten on every put, so
    concurrent writers race and the last one wins.
    """

    def __init__(self, path: Path, execution_id: str | None = None):
        self.path = Path(path)
        self.logger = create_execution_logger("translation_cache", execution_id)

    def load_all(self) -> dict[str, str]:
        """Read the whole cache, or an empty dict if missing or unreadable."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(
                f"Error reading translation cache file: {e}",
                cache_path=str(self.path),
                error=str(e),
            )
            return {}
        return data if isinstance(data, dict) else {}

    def save_all(self, translations: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(translations, f, ensure_ascii=False, indent=2)
        except OSError as e:
            self.logger.error(
                f"Error saving translation cache: {e}",
                cache_path=str(self.path),
                error=str(e),
            )
            return
        self.logger.debug("Translation cache saved to disk", entries=len(translations))

    def exists(self, key: str) -> bool:
        return bool(self.load_all().get(key))

    def get(self, key: str) -> str | None:
        return self.load_all().get(key) or None

    def put(self, key: str, translation: str) -> None:
        translations = self.load_all()
        translations[key] = translation
        self.save_all(translations)


class Translator:
    """Translates haikus with the generation service, backed by a cache."""

    def __init__(
        self,
        client: BedrockTextClient,
        cache: TranslationCache,
        target_language: str = "Russian",
        max_tokens: int = 100,
        execution_id: str | None = None,
    ):
        self.client = client
        self.cache = cache
        self.target_language = target_language
        self.max_tokens = max_tokens
        self.logger = create_execution_logger("translation", execution_id)

    async def translate(self, text: str) -> str | None:
        """Translate a haiku, returning None on failure or empty output."""
        prompt = TRANSLATION_PROMPT.format(language=self.target_language, text=text)
        self.logger.info(f"Calling generation service for {self.target_language} haiku translation")
        try:
            translation = await self.client.acomplete(prompt, max_tokens=self.max_tokens)
        except Exception as e:
            self.logger.error(f"Error translating haiku: {e}", error=str(e))
            return None

        if not translation:
            self.logger.error("Generation service returned no translation content")
            return None
        return translation

    async def translate_cached(self, text: str) -> str | None:
        """Serve a cached translation, or translate and cache a new one."""
        key = text_id(text)
        cached = await asyncio.to_thread(self.cache.get, key)
        if cached is not None:
            self.logger.info("Translation found in cache")
            return cached

        translation = await self.translate(text)
        if translation:
            await asyncio.to_thread(self.cache.put, key, translation)
        return translation

    async def lookup(self, texts: list[str]) -> dict[str, str]:
        """Map each text to its cached translation, skipping misses."""
        translations = await asyncio.to_thread(self.cache.load_all)
        found = {}
        for text in texts:
            translation = translations.get(text_id(text))
            if translation:
                found[text] = translation
        return found

    async def ensure_translated(self, haiku: Haiku) -> None:
        """Pre-translate a haiku unless its text is already cached."""
        if await asyncio.to_thread(self.cache.exists, text_id(haiku.text)):
            return

        try:
            self.logger.info(f"Pre-translating haiku {haiku.id}", haiku_id=haiku.id)
            await self.translate_cached(haiku.text)
        except Exception as e:
            self.logger.error(
                f"Error pre-translating haiku {haiku.id}: {e}",
                haiku_id=haiku.id,
                error=str(e),
            )

    async def ensure_all_translated(self, haikus: list[Haiku]) -> None:
        await asyncio.gather(*(self.ensure_translated(haiku) for haiku in haikus))
