"""Handles text translation through a hosted chat model."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from .backoff import BackoffExecutor
from .exceptions import MalformedResponse
from .openai_client import OpenAIClient
from .response_parser import TRANSLATIONS_FIELD, parse_translations, strip_quotes

logger = logging.getLogger(__name__)

BATCH_SYSTEM_PROMPT = (
    "You are a professional translator. Translate {source_name} to {target_name}. "
    "Keep meaning, tone, and honorific nuance. Do not add explanations."
)
BATCH_INSTRUCTION = (
    "Translate each item to {target_name}. Return strict JSON with "
    "{{\"" + TRANSLATIONS_FIELD + "\": string[]}} matching the input length."
)
SINGLE_SYSTEM_PROMPT = (
    "You are a professional translator. Translate {source_name} to {target_name}. "
    "Output only the translated text without quotes or explanations."
)

class Translator(ABC):
    """Abstract base class for translation services."""

    @abstractmethod
    def translate(self, text: str) -> str:
        """
        Translates a single line.

        Args:
            text: The text to translate.

        Returns:
            The translated text.

        Raises:
            TranslationError: If translation fails.
            ServiceError: If the service call fails.
        """
        pass

    @abstractmethod
    def translate_batch(self, texts: List[str]) -> List[str]:
        """
        Translates several lines in one request.

        Returns:
            Exactly one translation per input line, in order.

        Raises:
            ResponseFormatError: If the reply is unparseable or has the wrong length.
            ServiceError: If the service call fails.
        """
        pass


class ChatTranslator(Translator):
    """Translates with a chat-completions model, one batch or one line at a time."""

    def __init__(
        self,
        client: OpenAIClient,
        executor: BackoffExecutor,
        model_name: str = "gpt-4o-mini",
        source_lang: str = "ja",
        target_lang: str = "zh-TW",
        source_name: str = "Japanese",
        target_name: str = "Traditional Chinese (Taiwan)",
        batch_is_transient: Optional[Callable[[BaseException], bool]] = None,
        single_is_transient: Optional[Callable[[BaseException], bool]] = None
    ):
        """
        The bulk and single-line calls share `executor`'s retry policy; each may
        bring its own error classifier, otherwise the executor's is used.
        """
        self.client = client
        self.batch_executor = executor if batch_is_transient is None else executor.with_classifier(batch_is_transient)
        self.single_executor = executor if single_is_transient is None else executor.with_classifier(single_is_transient)
        self.model_name = model_name
        self.source_lang = source_lang
        self.target_lang = target_lang
        names = {"source_name": source_name, "target_name": target_name}
        self._batch_system = BATCH_SYSTEM_PROMPT.format(**names)
        self._batch_instruction = BATCH_INSTRUCTION.format(**names)
        self._single_system = SINGLE_SYSTEM_PROMPT.format(**names)
        logger.info(f"Initializing ChatTranslator with model '{self.model_name}' ({source_lang} -> {target_lang})")

    def translate_batch(self, texts: List[str]) -> List[str]:
        user = json.dumps({
            "instruction": self._batch_instruction,
            "source_language": self.source_lang,
            "target_language": self.target_lang,
            "items": texts,
        }, ensure_ascii=False)
        content = self.batch_executor.execute(
            self.client.chat,
            self.model_name,
            [
                {"role": "system", "content": self._batch_system},
                {"role": "user", "content": user},
            ],
            response_format={"type": "json_object"},
            description=f"Batch translation of {len(texts)} line(s)"
        )
        return parse_translations(content, expected_count=len(texts))

    def translate(self, text: str) -> str:
        if not text or not text.strip():
            return ""

        logger.debug(f"Translating single line: '{text[:50]}'")
        content = self.single_executor.execute(
            self.client.chat,
            self.model_name,
            [
                {"role": "system", "content": self._single_system},
                {"role": "user", "content": text},
            ],
            description="Single-line translation"
        )
        translated = strip_quotes(content)
        if not translated:
            raise MalformedResponse(f"Empty translation returned for '{text[:50]}'")
        logger.debug(f"Translation result: '{translated[:50]}'")
        return translated
