"""Burns subtitles into video with ffmpeg, and finds a fonts directory for libass."""

import logging
import os
import sys
from typing import Iterable, List, Optional

import ffmpeg

from .exceptions import RenderError

logger = logging.getLogger(__name__)


def system_font_dirs(platform: str = sys.platform, home: Optional[str] = None) -> List[str]:
    """Common font locations for the given platform, most specific first."""
    if platform == "darwin":
        dirs = ["/System/Library/Fonts", "/Library/Fonts"]
        if home:
            dirs.append(os.path.join(home, "Library", "Fonts"))
        return dirs
    if platform.startswith("win"):
        return ["C:/Windows/Fonts"]
    return ["/usr/share/fonts", "/usr/local/share/fonts", "/usr/share/fonts/truetype"]


def resolve_fonts_dir(
    preferred: Optional[str] = None,
    env_dirs: Iterable[Optional[str]] = (),
    cwd: Optional[str] = None,
    system_dirs: Optional[Iterable[str]] = None
) -> Optional[str]:
    """
    Picks the first existing fonts directory.

    Order: `preferred`, ``<cwd>/fonts``, directories from the environment,
    then system locations.
    """
    candidates: List[Optional[str]] = [preferred]
    candidates.append(os.path.join(cwd or os.getcwd(), "fonts"))
    candidates.extend(env_dirs)
    candidates.extend(system_font_dirs(home=os.path.expanduser("~")) if system_dirs is None else system_dirs)
    for candidate in candidates:
        if candidate and os.path.isdir(candidate):
            return candidate
    return None


def escape_filter_path(path: str) -> str:
    """Escapes characters that are special inside an ffmpeg filter argument."""
    return path.replace("\\", "\\\\").replace(":", "\\:").replace("=", "\\=")


def build_subtitles_filter(subtitle_path: str, fonts_dir: Optional[str] = None, font_name: Optional[str] = None) -> str:
    """
    Builds the `subtitles=` filter string.

    A forced font is only applied to non-ASS inputs; ASS files carry their own style.
    """
    value = f"subtitles={escape_filter_path(subtitle_path)}"
    if fonts_dir:
        value += f":fontsdir={escape_filter_path(fonts_dir)}"
    if font_name and not subtitle_path.lower().endswith(".ass"):
        safe = font_name.replace("'", "\\'")
        value += f":force_style='FontName={safe}'"
    return value


class VideoRenderer:
    """Re-encodes a video with subtitles drawn onto the frames."""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        self.ffmpeg_cmd = ffmpeg_path or "ffmpeg"

    def burn_subtitles(
        self,
        video_path: str,
        subtitle_path: str,
        output_path: str,
        fonts_dir: Optional[str] = None,
        font_name: Optional[str] = None
    ) -> str:
        """
        Burns `subtitle_path` into `video_path`, copying the audio stream.

        Returns:
            `output_path`.

        Raises:
            RenderError: If ffmpeg fails.
        """
        subtitle_filter = build_subtitles_filter(subtitle_path, fonts_dir, font_name)
        logger.info(f"Burning subtitles into {output_path} (filter: {subtitle_filter})")
        stream = ffmpeg.input(video_path).output(output_path, vf=subtitle_filter, **{"c:a": "copy"})
        try:
            stream.overwrite_output().run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode("utf-8", errors="replace") if e.stderr else "No stderr output"
            logger.error(f"ffmpeg burn-in failed: {stderr_output}")
            raise RenderError(f"ffmpeg burn-in failed: {stderr_output}") from e
        except OSError as e:
            raise RenderError(f"Could not run ffmpeg ({self.ffmpeg_cmd}): {e}") from e
        logger.info(f"Video with burned-in subtitles saved to: {output_path}")
        return output_path
