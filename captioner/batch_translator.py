"""Bulk translation of subtitle lines with bisection recovery."""

import logging
from typing import List, Optional

from tqdm import tqdm

from .exceptions import CaptionerError, ResponseFormatError, ServiceError, TranslationIncomplete
from .models import BatchRange
from .translator import Translator

logger = logging.getLogger(__name__)

class BatchTranslator:
    """
    Translates an ordered list of lines in fixed-size windows.

    A window is first sent as a single bulk request. If the reply cannot be
    parsed, has the wrong number of items, or the request fails, the range is
    halved and each half retried, down to single lines, which go through the
    plain one-line protocol. Results are written by absolute index, so the
    order in which ranges are retried never changes the output.
    """

    def __init__(self, translator: Translator, batch_size: int = 60, show_progress: bool = True):
        self.translator = translator
        self.batch_size = batch_size
        self.show_progress = show_progress

    def translate_all(self, lines: List[str], batch_size: Optional[int] = None) -> List[str]:
        """
        Translates every line, preserving order and length.

        Args:
            lines: Source texts, index-aligned with the segments.
            batch_size: Lines per bulk request. Values below 1 are treated as 1.

        Returns:
            One translation per input line.

        Raises:
            TranslationIncomplete: If some line could not be translated even
                                   through the single-line fallback.
        """
        if not lines:
            return []
        size = max(1, batch_size if batch_size is not None else self.batch_size)
        slots: List[Optional[str]] = [None] * len(lines)

        windows = [BatchRange(start, min(start + size, len(lines))) for start in range(0, len(lines), size)]
        logger.info(f"Translating {len(lines)} line(s) in {len(windows)} batch(es) of up to {size}.")
        for window in tqdm(windows, unit="batch", desc="Translating", disable=not self.show_progress):
            self._translate_window(lines, window, slots)

        return self._collect(slots)

    def _translate_window(self, lines: List[str], window: BatchRange, slots: List[Optional[str]]) -> None:
        stack = [window]
        while stack:
            current = stack.pop()
            if current.size == 0:
                continue
            try:
                translated = self.translator.translate_batch(lines[current.start:current.end])
                if len(translated) != current.size:
                    raise ResponseFormatError(
                        f"Expected {current.size} translations, got {len(translated)}"
                    )
            except (ResponseFormatError, ServiceError) as e:
                if current.size == 1:
                    logger.warning(f"Bulk translation failed for line {current.start}: {e}. Using single-line fallback.")
                    slots[current.start] = self._translate_single(lines, current.start)
                else:
                    left, right = current.split()
                    logger.warning(
                        f"Bulk translation failed for lines [{current.start}, {current.end}): {e}. "
                        f"Splitting into [{left.start}, {left.end}) and [{right.start}, {right.end})."
                    )
                    # Left half is popped first.
                    stack.append(right)
                    stack.append(left)
                continue

            for offset, text in enumerate(translated):
                slots[current.start + offset] = text

    def _translate_single(self, lines: List[str], index: int) -> str:
        try:
            return self.translator.translate(lines[index])
        except CaptionerError as e:
            logger.error(f"Single-line translation failed for line {index} ('{lines[index][:30]}'): {e}")
            raise TranslationIncomplete(index, str(e)) from e

    @staticmethod
    def _collect(slots: List[Optional[str]]) -> List[str]:
        for index, slot in enumerate(slots):
            if slot is None:
                raise TranslationIncomplete(index, "no translation was recorded")
        return list(slots)
