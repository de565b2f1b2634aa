"""Handles Speech-to-Text transcription through the remote Whisper API."""

import logging
import math
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from tqdm import tqdm

from .backoff import BackoffExecutor
from .exceptions import NoSegments, TranscriptionEmptyChunk
from .models import AudioChunk, Segment, TranscriptionResult
from .openai_client import OpenAIClient

logger = logging.getLogger(__name__)

# Shortest clip the speech endpoint accepts
MIN_CHUNK_SECONDS = 0.1

class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Transcribes the given audio file.

        Args:
            audio_path: Path to the audio file.

        Returns:
            A TranscriptionResult object containing segments and language.

        Raises:
            TranscriptionError: If transcription fails.
            FileNotFoundError: If the audio file doesn't exist.
        """
        pass


def segments_from_payload(raw_segments: List[Dict[str, Any]]) -> List[Segment]:
    """Converts verbose_json segment dicts into Segment objects."""
    segments = []
    for seg_data in raw_segments:
        if not isinstance(seg_data, dict) or not all(k in seg_data for k in ("start", "end", "text")):
            logger.warning(f"Skipping incomplete segment data: {seg_data}")
            continue
        try:
            start = float(seg_data["start"])
            end = float(seg_data["end"])
        except (TypeError, ValueError):
            logger.warning(f"Skipping segment with non-numeric times: {seg_data}")
            continue
        if end < start:
            logger.warning(f"Segment ends before it starts ({start} > {end}); clamping end to start.")
            end = start
        segments.append(Segment(start_time=start, end_time=end, text=str(seg_data["text"]).strip()))
    return segments


class WhisperAPITranscriber(Transcriber):
    """Transcribes a single audio file with the hosted Whisper endpoint."""

    def __init__(
        self,
        client: OpenAIClient,
        executor: BackoffExecutor,
        model_name: str = "whisper-1",
        language: Optional[str] = "ja",
        is_transient: Optional[Callable[[BaseException], bool]] = None
    ):
        """
        Args:
            client: API client used for the upload.
            executor: Shared retry policy.
            model_name: Speech-to-text model.
            language: Language hint sent with every request.
            is_transient: Error classifier for this call site. Keeps the
                          executor's own classifier if None.
        """
        self.client = client
        self.executor = executor if is_transient is None else executor.with_classifier(is_transient)
        self.model_name = model_name
        self.language = language
        logger.info(f"Initializing WhisperAPITranscriber with model '{self.model_name}' (language hint: {self.language})")

    def transcribe(self, audio_path: str) -> TranscriptionResult:
        logger.info(f"Starting transcription for: {audio_path}")
        if not os.path.exists(audio_path):
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        raw_segments = self.executor.execute(
            self.client.transcribe,
            audio_path,
            self.model_name,
            self.language,
            description=f"Transcription of {os.path.basename(audio_path)}"
        )
        segments = segments_from_payload(raw_segments)
        logger.info(f"Processed {len(segments)} segments from transcription.")
        return TranscriptionResult(language=self.language, segments=segments, original_audio_path=audio_path)


def plan_chunks(total_duration: float, chunk_seconds: float) -> List[AudioChunk]:
    """
    Splits [0, total_duration) into ceil(total_duration / chunk_seconds) chunks.

    A trailing chunk shorter than MIN_CHUNK_SECONDS is folded into the one
    before it, since the speech endpoint rejects such short clips.

    >>> [(c.start, c.duration) for c in plan_chunks(1500, 600)]
    [(0, 600), (600, 600), (1200, 300)]
    """
    if chunk_seconds <= 0:
        raise ValueError(f"chunk_seconds must be positive, got {chunk_seconds}")
    if total_duration <= 0:
        return []
    count = math.ceil(total_duration / chunk_seconds)
    chunks = []
    for index in range(count):
        start = index * chunk_seconds
        duration = min(chunk_seconds, total_duration - start)
        chunks.append(AudioChunk(index=index, start=start, duration=duration))

    if len(chunks) > 1 and chunks[-1].duration < MIN_CHUNK_SECONDS:
        tail = chunks.pop()
        logger.warning(
            f"Final chunk is only {tail.duration:.3f}s long; merging it into chunk {chunks[-1].index}."
        )
        chunks[-1].duration += tail.duration
    return chunks


class ChunkedTranscriber(Transcriber):
    """
    Transcribes long audio by cutting it into fixed-length chunks.

    Every chunk is sent on its own and must produce at least one segment.
    Segment times from chunk i are shifted by i * chunk_seconds, which keeps the
    merged list in ascending order without sorting.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        audio_extractor,
        chunk_seconds: float = 600,
        temp_dir: Optional[str] = None,
        show_progress: bool = True
    ):
        """
        Args:
            transcriber: Transcribes one chunk file.
            audio_extractor: Provides probe_duration() and extract_chunk().
            chunk_seconds: Default chunk length.
            temp_dir: Where chunk files are written. System temp dir if None.
            show_progress: Whether to draw a progress bar.
        """
        self.transcriber = transcriber
        self.audio_extractor = audio_extractor
        self.chunk_seconds = chunk_seconds
        self.temp_dir = temp_dir
        self.show_progress = show_progress

    def transcribe(self, audio_path: str) -> TranscriptionResult:
        return self.transcribe_all(audio_path, self.chunk_seconds)

    def transcribe_all(self, audio_path: str, chunk_seconds: Optional[float] = None) -> TranscriptionResult:
        """
        Transcribes every chunk of `audio_path` in order and merges the results.

        Raises:
            FileNotFoundError: If the audio file doesn't exist.
            ValueError: If chunk_seconds is not positive.
            TranscriptionEmptyChunk: If any chunk produces no segments.
            NoSegments: If nothing at all was transcribed.
        """
        if chunk_seconds is None:
            chunk_seconds = self.chunk_seconds
        if not os.path.exists(audio_path):
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        total_duration = self.audio_extractor.probe_duration(audio_path)
        chunks = plan_chunks(total_duration, chunk_seconds)
        logger.info(f"Audio is {total_duration:.2f}s long; transcribing in {len(chunks)} chunk(s) of {chunk_seconds}s.")

        merged: List[Segment] = []
        language = None
        with tempfile.TemporaryDirectory(prefix="captioner_chunks_", dir=self.temp_dir) as chunk_dir:
            for chunk in tqdm(chunks, unit="chunk", desc="Transcribing", disable=not self.show_progress):
                logger.info(f"Transcribing chunk {chunk.index + 1}/{len(chunks)} ({chunk.start:.0f}s +{chunk.duration:.0f}s)")
                chunk.path = self.audio_extractor.extract_chunk(audio_path, chunk, chunk_dir)
                try:
                    result = self.transcriber.transcribe(chunk.path)
                finally:
                    self._discard_chunk(chunk)

                if not result.segments:
                    raise TranscriptionEmptyChunk(chunk.index)
                language = language or result.language
                offset = chunk.index * chunk_seconds
                merged.extend(segment.shifted(offset) for segment in result.segments)

        if not merged:
            raise NoSegments(f"Transcription of {audio_path} produced no segments.")
        logger.info(f"Merged {len(merged)} segments from {len(chunks)} chunk(s).")
        return TranscriptionResult(language=language, segments=merged, original_audio_path=audio_path)

    @staticmethod
    def _discard_chunk(chunk: AudioChunk) -> None:
        if chunk.path and os.path.exists(chunk.path):
            try:
                os.remove(chunk.path)
            except OSError as e:
                logger.warning(f"Could not remove chunk file {chunk.path}: {e}")
        chunk.path = None
