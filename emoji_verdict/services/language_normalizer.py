"""Language Normalizer - detect source language, translate to the working language.

Invariants:
    - Identity when source == target or text is blank (no network call)
    - Text shorter than min_detect_chars is taken as the working language:
      langdetect is unreliable on one-liners ("Water is wet." reads as "af")
    - Detection failure, low confidence, or the working language appearing
      among the candidates yields the working language
    - Policy FAIL_OPEN: ANY detect/translate failure returns the original text,
      language "en", degraded=True, and the request continues
    - Each translation call is bounded by timeout_seconds

Design Decisions:
    - langdetect for detection: local, deterministic once seeded
    - deep-translator GoogleTranslator for translation: no API key, fast
    - Translator runs with source="auto": langdetect only gates the call and
      labels the status line, so a misdetected source cannot garble the text
    - GoogleTranslator is blocking: run in a worker thread via asyncio.to_thread
    - No translation cache: submitted text must not outlive the request
"""

import asyncio
import logging
from dataclasses import dataclass

from deep_translator import GoogleTranslator
from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

from emoji_verdict.core.domain_types import NormalizedText, StagePolicy
from emoji_verdict.core.errors import ErrorContext, UpstreamUnavailableError

logger = logging.getLogger(__name__)

DetectorFactory.seed = 0  # Deterministic: must be set BEFORE any detect() call

DEFAULT_LANGUAGE = "en"
MIN_DETECT_CHARS = 40


@dataclass(frozen=True)
class TranslationResult:
    translated: str
    was_translated: bool


class LanguageNormalizer:
    def __init__(
        self,
        working_language: str = DEFAULT_LANGUAGE,
        timeout_seconds: float = 10.0,
        min_confidence: float = 0.9,
        min_detect_chars: int = MIN_DETECT_CHARS,
        policy: StagePolicy = StagePolicy.FAIL_OPEN,
    ):
        self.working_language = working_language
        self.timeout_seconds = timeout_seconds
        self.min_confidence = min_confidence
        self.min_detect_chars = min_detect_chars
        self.policy = policy

    def detect(self, text: str) -> str:
        """Dominant language code of text, lowercased. Working language when unsure."""
        if not text or len(text.strip()) < self.min_detect_chars:
            return self.working_language
        try:
            results = detect_langs(text)
        except LangDetectException:
            return self.working_language
        if not results or results[0].prob < self.min_confidence:
            return self.working_language
        if any(r.lang.lower() == self.working_language for r in results):
            return self.working_language
        return (results[0].lang or self.working_language).lower()

    async def translate(
        self, text: str, source: str, target: str,
    ) -> TranslationResult:
        if source == target or not text.strip():
            return TranslationResult(text, False)
        translator = GoogleTranslator(source="auto", target=target)
        translated = await asyncio.wait_for(
            asyncio.to_thread(translator.translate, text),
            timeout=self.timeout_seconds,
        )
        if not isinstance(translated, str) or not translated.strip():
            return TranslationResult(text, False)
        return TranslationResult(translated, translated != text)

    async def normalize(self, text: str) -> NormalizedText:
        """detect + translate under this stage's failure policy."""
        try:
            language = self.detect(text)
            result = await self.translate(text, language, self.working_language)
        except Exception as e:
            if self.policy == StagePolicy.FAIL_CLOSED:
                raise UpstreamUnavailableError(
                    str(e), "translation_error", service="translator",
                    context=ErrorContext(stage="translating"),
                ) from e
            logger.warning("Language handling failed, using original text: %s", e)
            return NormalizedText(text=text, language=DEFAULT_LANGUAGE, degraded=True)

        if result.was_translated:
            logger.info("Translated submission", extra={"language": language})
        return NormalizedText(
            text=result.translated,
            language=language,
            was_translated=result.was_translated,
        )
