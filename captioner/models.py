"""Data models for Captioner."""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

@dataclass
class Segment:
    """Represents a single timed chunk of recognized speech."""
    start_time: float
    end_time: float
    text: str

    def __post_init__(self):
        if self.start_time > self.end_time:
            raise ValueError(
                f"Segment starts after it ends ({self.start_time} > {self.end_time}): {self.text[:30]!r}"
            )

    def shifted(self, offset: float) -> "Segment":
        """Returns a copy moved `offset` seconds later."""
        return Segment(
            start_time=self.start_time + offset,
            end_time=self.end_time + offset,
            text=self.text
        )

@dataclass
class TranscriptionResult:
    """Holds the structured output from the ASR process."""
    language: Optional[str]
    segments: List[Segment] = field(default_factory=list)
    original_audio_path: Optional[str] = None

@dataclass
class AudioChunk:
    """A contiguous slice [start, start + duration) of the source audio."""
    index: int
    start: float
    duration: float
    path: Optional[str] = None

@dataclass
class Cue:
    """A timed block of target-language text, ready to be written out."""
    start_time: float
    end_time: float
    text: str

class BatchRange(NamedTuple):
    """Half-open index interval [start, end) into the line list."""
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start

    def split(self):
        mid = self.start + self.size // 2
        return BatchRange(self.start, mid), BatchRange(mid, self.end)
