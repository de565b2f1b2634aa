"""Handles audio extraction, probing and chunk cutting using ffmpeg."""

import ffmpeg
import os
import logging
import shutil
import subprocess
from .exceptions import AudioExtractionError, FileSystemError
from .models import AudioChunk
from typing import Optional
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

def _ffprobe_for(ffmpeg_cmd: str) -> str:
    """Guesses the ffprobe binary that ships next to `ffmpeg_cmd`."""
    directory, name = os.path.split(ffmpeg_cmd)
    probe_name = name.replace('ffmpeg', 'ffprobe') if 'ffmpeg' in name else 'ffprobe'
    return os.path.join(directory, probe_name) if directory else probe_name

class AudioExtractor:
    """Extracts 16 kHz mono WAV audio from media files and cuts it into chunks."""

    def __init__(self, ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None):
        """
        Initializes the AudioExtractor.

        Args:
            ffmpeg_path: Optional path to the ffmpeg executable.
                         If None, assumes ffmpeg is in the system PATH.
            ffprobe_path: Optional path to ffprobe. Defaults to the one next to ffmpeg.
        """
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.ffprobe_cmd = ffprobe_path or _ffprobe_for(self.ffmpeg_cmd)
        logger.info(f"Using ffmpeg command: {self.ffmpeg_cmd} (ffprobe: {self.ffprobe_cmd})")

    def ensure_ffmpeg(self) -> None:
        """
        Checks that the ffmpeg binary can be run.

        Raises:
            AudioExtractionError: If ffmpeg is missing or broken.
        """
        if shutil.which(self.ffmpeg_cmd) is None and not os.path.isfile(self.ffmpeg_cmd):
            raise AudioExtractionError(
                f"ffmpeg is required but '{self.ffmpeg_cmd}' was not found (install via brew/apt/choco)."
            )
        try:
            subprocess.run([self.ffmpeg_cmd, '-version'], check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise AudioExtractionError(f"ffmpeg is not usable ({self.ffmpeg_cmd}): {e}") from e

    def _run(self, stream, output_path: str, action: str) -> None:
        try:
            stream.overwrite_output().run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffmpeg error during {action}: {stderr_output}")
            if os.path.exists(output_path):
                try:
                    os.remove(output_path)
                except OSError:
                    logger.warning(f"Could not clean up partially created file: {output_path}")
            raise AudioExtractionError(f"ffmpeg {action} failed: {stderr_output}") from e
        except OSError as e:
            logger.error(f"Could not run ffmpeg for {action}: {e}", exc_info=True)
            raise AudioExtractionError(f"Could not run ffmpeg ({self.ffmpeg_cmd}): {e}") from e

    def extract_audio(self, video_filepath: str, output_audio_dir: str, output_filename: Optional[str] = None) -> str:
        """
        Extracts the audio stream from a video file to a 16 kHz mono WAV file.

        Args:
            video_filepath: Path to the input video file.
            output_audio_dir: Directory to save the extracted audio file.
            output_filename: Optional base name for the output audio file.
                             If None, uses the video filename.

        Returns:
            The full path to the extracted audio file (WAV format).

        Raises:
            FileNotFoundError: If the input video file does not exist.
            AudioExtractionError: If ffmpeg fails to extract the audio.
            FileSystemError: If the output directory cannot be created/accessed.
        """
        logger.info(f"Starting audio extraction for: {video_filepath}")
        if not os.path.exists(video_filepath):
            raise FileNotFoundError(f"Input video file not found: {video_filepath}")

        ensure_dir_exists(output_audio_dir)

        if output_filename is None:
            base_name = os.path.splitext(os.path.basename(video_filepath))[0]
        else:
            base_name = os.path.splitext(output_filename)[0]
        output_audio_path = os.path.join(output_audio_dir, f"{base_name}.wav")

        if os.path.exists(output_audio_path):
            logger.warning(f"Output audio file already exists, overwriting: {output_audio_path}")
            try:
                os.remove(output_audio_path)
            except OSError as e:
                raise FileSystemError(f"Could not remove existing audio file {output_audio_path}: {e}") from e

        logger.info(f"Running ffmpeg to extract audio to {output_audio_path}...")
        # pcm_s16le at 16 kHz mono is what the speech endpoint expects
        stream = ffmpeg.input(video_filepath).output(output_audio_path, vn=None, acodec='pcm_s16le', ar=16000, ac=1)
        self._run(stream, output_audio_path, "audio extraction")
        logger.info(f"Successfully extracted audio to: {output_audio_path}")
        return output_audio_path

    def probe_duration(self, media_path: str) -> float:
        """
        Returns the duration of a media file in seconds.

        Raises:
            AudioExtractionError: If ffprobe fails or reports no duration.
        """
        try:
            probe = ffmpeg.probe(media_path, cmd=self.ffprobe_cmd)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            raise AudioExtractionError(f"ffprobe failed for {media_path}: {stderr_output}") from e
        except OSError as e:
            raise AudioExtractionError(f"Could not run ffprobe ({self.ffprobe_cmd}): {e}") from e

        try:
            duration = float(probe['format']['duration'])
        except (KeyError, TypeError, ValueError) as e:
            raise AudioExtractionError(f"ffprobe reported no duration for {media_path}") from e
        logger.debug(f"Probed duration of {media_path}: {duration:.3f}s")
        return duration

    def extract_chunk(self, audio_path: str, chunk: AudioChunk, output_dir: str) -> str:
        """
        Cuts [chunk.start, chunk.start + chunk.duration) out of `audio_path` into its own WAV file.

        Returns:
            Path of the chunk file.

        Raises:
            AudioExtractionError: If ffmpeg fails.
        """
        ensure_dir_exists(output_dir)
        chunk_path = os.path.join(output_dir, f"chunk_{chunk.index:05d}.wav")
        logger.debug(f"Cutting chunk {chunk.index} ({chunk.start}s +{chunk.duration}s) to {chunk_path}")
        stream = (
            ffmpeg
            .input(audio_path, ss=chunk.start, t=chunk.duration)
            .output(chunk_path, acodec='pcm_s16le', ar=16000, ac=1)
        )
        self._run(stream, chunk_path, f"chunk {chunk.index} cutting")
        return chunk_path
