"""Orchestrates the captioning pipeline."""

import logging
import os
import tempfile
import time
from typing import List, Optional, Tuple

from .audio_extractor import AudioExtractor
from .batch_translator import BatchTranslator
from .config_loader import AppConfig
from .transcriber import ChunkedTranscriber
from .subtitle_formatter import ASSFormatter, SRTFormatter, build_cues
from .video_renderer import VideoRenderer, resolve_fonts_dir
from .models import Cue, TranscriptionResult
from .exceptions import CaptionerError, FileSystemError
from .utils import default_output_video_path, default_srt_path, ensure_dir_exists

logger = logging.getLogger(__name__)

class SubtitleGenerator:
    """
    Manages the end-to-end process of captioning one video: extract audio,
    transcribe in chunks, translate in batches, write subtitles and
    optionally burn them into a new video.
    """

    def __init__(
        self,
        config: AppConfig,
        audio_extractor: AudioExtractor,
        transcriber: ChunkedTranscriber,
        batch_translator: BatchTranslator,
        video_renderer: Optional[VideoRenderer] = None
    ):
        """
        Initializes the SubtitleGenerator.

        Args:
            config: The run configuration.
            audio_extractor: Extracts and cuts audio.
            transcriber: Chunked speech-to-text.
            batch_translator: Resilient line translator.
            video_renderer: Burns subtitles into video. Only needed for burn-in.
        """
        self.config = config
        self.audio_extractor = audio_extractor
        self.transcriber = transcriber
        self.batch_translator = batch_translator
        self.video_renderer = video_renderer
        self.srt_formatter = SRTFormatter()
        self.ass_formatter = ASSFormatter(
            font_name=config.font_name,
            font_size=config.effective_font_size,
            bilingual=config.bilingual
        )

        try:
            ensure_dir_exists(config.temp_dir)
        except (FileSystemError, ValueError) as e:
            raise CaptionerError(f"Temporary directory '{config.temp_dir}' is invalid: {e}") from e

    def translate_segments(self, transcription: TranscriptionResult) -> List[Cue]:
        """Translates every segment and pairs the results with their timings."""
        lines = [segment.text for segment in transcription.segments]
        translations = self.batch_translator.translate_all(lines, self.config.translate_batch_size)
        return build_cues(transcription.segments, translations, bilingual=self.config.bilingual)

    def generate(
        self,
        video_path: str,
        output_srt: Optional[str] = None,
        output_video: Optional[str] = None
    ) -> Tuple[str, Optional[str]]:
        """
        Executes the full pipeline for a single video.

        Args:
            video_path: Path to the input video file.
            output_srt: Where to write the SRT. Defaults to `<stem>.<lang>.srt` next to the input.
            output_video: Where to write the burned video. If None, a video is
                          only produced when burn-in is enabled, at the default path.

        Returns:
            (srt path, video path or None).

        Raises:
            CaptionerError: For any configuration or processing errors in the pipeline.
            FileNotFoundError: If the input video is not found.
        """
        start_time = time.time()
        logger.info(f"--- Starting captioning for: {video_path} ---")
        if not os.path.isfile(video_path):
            raise FileNotFoundError(f"Input video file not found: {video_path}")

        output_srt = output_srt or default_srt_path(video_path, self.config.target_language)
        make_video = self.config.burn_in or output_video is not None
        if make_video:
            output_video = output_video or default_output_video_path(video_path, self.config.target_language)

        try:
            with tempfile.TemporaryDirectory(prefix="captioner_", dir=self.config.temp_dir) as work_dir:
                logger.info("Step 1: Extracting audio...")
                audio_path = self.audio_extractor.extract_audio(video_path, work_dir, "audio_16k_mono")

                logger.info(f"Step 2: Transcribing audio ({self.config.source_language})...")
                transcription = self.transcriber.transcribe_all(audio_path, self.config.chunk_seconds)
                logger.info(f"Transcription complete. Found {len(transcription.segments)} segments.")

                logger.info(f"Step 3: Translating to {self.config.target_language}...")
                cues = self.translate_segments(transcription)

                logger.info("Step 4: Writing SRT subtitles...")
                output_dir = os.path.dirname(os.path.abspath(output_srt))
                ensure_dir_exists(output_dir)
                self.srt_formatter.format_subtitles(cues, output_srt)

                if make_video:
                    logger.info("Step 5: Burning subtitles into video...")
                    self._burn_in(video_path, cues, work_dir, output_video)

        except (CaptionerError, FileNotFoundError) as e:
            logger.error(f"Captioning failed: {e}")
            raise
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred during captioning: {e}", exc_info=True)
            raise CaptionerError(f"An unexpected critical error occurred: {e}") from e

        logger.info(f"--- Captioning completed successfully in {time.time() - start_time:.2f} seconds ---")
        return output_srt, output_video if make_video else None

    def _burn_in(self, video_path: str, cues: List[Cue], work_dir: str, output_video: str) -> None:
        if self.video_renderer is None:
            raise CaptionerError("Burn-in requested but no video renderer is configured.")
        ass_path = os.path.join(work_dir, "subs.ass")
        self.ass_formatter.format_subtitles(cues, ass_path)

        fonts_dir = resolve_fonts_dir(self.config.font_dir, self.config.env_font_dirs)
        if fonts_dir:
            logger.info(f"Using fonts dir: {fonts_dir}")
        else:
            logger.warning(
                f"No fonts dir found; relying on system fallback. Copy {self.config.font_name} font files "
                f"into ./fonts, or point --font-dir or CAPTIONER_FONTS_DIR at them (see README, Fonts)."
            )
        self.video_renderer.burn_subtitles(video_path, ass_path, output_video, fonts_dir=fonts_dir)
