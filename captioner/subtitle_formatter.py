"""Handles writing cues into subtitle files (SRT and ASS)."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Cue, Segment
from .exceptions import FormattingError
from .utils import format_time_ass, format_time_srt

logger = logging.getLogger(__name__)


def build_cues(segments: List[Segment], translations: List[str], bilingual: bool = False) -> List[Cue]:
    """
    Pairs each segment with its translation.

    With `bilingual` the cue text is the translation followed by the source
    line on a second line.

    Raises:
        FormattingError: If the two lists differ in length.
    """
    if len(segments) != len(translations):
        raise FormattingError(
            f"Translation count mismatch: {len(translations)} translations for {len(segments)} segments"
        )
    cues = []
    for segment, translated in zip(segments, translations):
        text = f"{translated}\n{segment.text}" if bilingual else translated
        cues.append(Cue(start_time=segment.start_time, end_time=segment.end_time, text=text))
    return cues


class SubtitleFormatter(ABC):
    """Abstract base class for subtitle formatters."""

    extension = ""

    @abstractmethod
    def render(self, cues: List[Cue]) -> str:
        """Returns the full file contents for `cues`."""
        pass

    def format_subtitles(self, cues: List[Cue], output_path: str) -> None:
        """
        Writes the cues to a subtitle file.

        Args:
            cues: Ordered cues to write.
            output_path: The path to save the formatted subtitle file.

        Raises:
            FormattingError: If writing fails.
        """
        logger.info(f"Writing {len(cues)} cues to {self.extension.upper()} file: {output_path}")
        try:
            content = self.render(cues)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write subtitle file to {output_path}: {e}", exc_info=True)
            raise FormattingError(f"Could not write subtitle file {output_path}: {e}") from e
        logger.info(f"Successfully wrote {len(cues)} subtitle blocks to {output_path}")


class SRTFormatter(SubtitleFormatter):
    """Formats subtitles into the SRT (SubRip Text) format."""

    extension = "srt"

    def render(self, cues: List[Cue]) -> str:
        blocks = []
        for index, cue in enumerate(cues, start=1):
            blocks.append(
                f"{index}\n{format_time_srt(cue.start_time)} --> {format_time_srt(cue.end_time)}\n{cue.text}\n\n"
            )
        return "".join(blocks)


ASS_HEADER = """[Script Info]
ScriptType: v4.00+
WrapStyle: 0
ScaledBorderAndShadow: yes
YCbCr Matrix: TV.601

[V4+ Styles]
Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding
Style: Default,{font},{size},&H00FFFFFF,&H000000FF,&H00000000,&H64000000,0,0,0,0,100,100,0,0,1,2,0,2,10,10,20,1

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
"""


class ASSFormatter(SubtitleFormatter):
    """
    Formats subtitles as Advanced SubStation Alpha with a single bottom-centred
    style, so burn-in uses an explicit font instead of whatever libass picks.
    """

    extension = "ass"

    def __init__(self, font_name: str = "Noto Sans CJK TC", font_size: Optional[int] = None, bilingual: bool = False):
        self.font_name = font_name
        self.font_size = font_size or (30 if bilingual else 36)

    @staticmethod
    def escape_text(text: str) -> str:
        # Braces start override blocks in ASS
        return text.replace("\n", "\\N").replace("{", "(").replace("}", ")")

    def render(self, cues: List[Cue]) -> str:
        # Commas separate style fields
        font = self.font_name.replace(",", " ")
        lines = [ASS_HEADER.format(font=font, size=self.font_size)]
        for cue in cues:
            lines.append(
                f"Dialogue: 0,{format_time_ass(cue.start_time)},{format_time_ass(cue.end_time)},"
                f"Default,,0,0,0,,{self.escape_text(cue.text)}\n"
            )
        return "".join(lines)
