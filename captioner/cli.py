"""Command-Line Interface handler for Captioner."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config_loader import AppConfig, ConfigLoader
from .log_setup import setup_logging
from .audio_extractor import AudioExtractor
from .backoff import BackoffExecutor, is_transient_service_error
from .batch_translator import BatchTranslator
from .openai_client import OpenAIClient
from .transcriber import ChunkedTranscriber, WhisperAPITranscriber
from .translator import ChatTranslator
from .subtitle_generator import SubtitleGenerator
from .video_renderer import VideoRenderer
from .exceptions import CaptionerError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
AUTO_OUTPUT = "__AUTO__"

def build_generator(config: AppConfig) -> SubtitleGenerator:
    """Wires every component from one configuration value."""
    client = OpenAIClient(config.api_key, base_url=config.api_base_url, timeout=config.request_timeout)
    executor = BackoffExecutor(
        is_transient=is_transient_service_error,
        max_attempts=config.max_attempts,
        base_delay=config.backoff_base_seconds
    )
    audio_extractor = AudioExtractor(ffmpeg_path=config.ffmpeg_path)
    audio_extractor.ensure_ffmpeg()

    transcriber = ChunkedTranscriber(
        WhisperAPITranscriber(
            client,
            executor,
            model_name=config.whisper_model,
            language=config.source_language,
            is_transient=is_transient_service_error
        ),
        audio_extractor,
        chunk_seconds=config.chunk_seconds,
        temp_dir=config.temp_dir,
        show_progress=config.show_progress
    )
    translator = ChatTranslator(
        client,
        executor,
        model_name=config.translate_model,
        source_lang=config.source_language,
        target_lang=config.target_language,
        source_name=config.source_language_name,
        target_name=config.target_language_name,
        batch_is_transient=is_transient_service_error,
        single_is_transient=is_transient_service_error
    )
    return SubtitleGenerator(
        config=config,
        audio_extractor=audio_extractor,
        transcriber=transcriber,
        batch_translator=BatchTranslator(translator, config.translate_batch_size, show_progress=config.show_progress),
        video_renderer=VideoRenderer(ffmpeg_path=config.ffmpeg_path)
    )


class CLIHandler:
    """Parses arguments and orchestrates the captioning process."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            prog="captioner",
            description="Captioner: add translated subtitles (from Japanese audio by default) to videos.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument("-i", "--input", required=True, help="Input video file (MP4).")
        parser.add_argument(
            "--output-srt",
            default=None,
            help="Output SRT file (default: alongside input as <name>.<target-lang>.srt)."
        )
        parser.add_argument(
            "--output",
            nargs="?",
            const=AUTO_OUTPUT,
            default=None,
            help="Output video path. Pass without a value to use <name>.zh.mp4 next to the input."
        )
        parser.add_argument(
            "--burn-in",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Burn subtitles into a re-encoded video (config default: on)."
        )
        parser.add_argument(
            "--bilingual",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Show the translation with the source line underneath (config default: on)."
        )
        parser.add_argument("--font-dir", default=None, help="Directory containing fonts for burn-in (libass fontsdir).")
        parser.add_argument("--font-name", default=None, help="Font family for burn-in, e.g. 'Noto Sans CJK TC'.")
        parser.add_argument("--font-size", type=int, default=None, help="Font size for burn-in (36, or 30 when bilingual).")
        parser.add_argument("--whisper-model", default=None, help="Speech-to-text model.")
        parser.add_argument("--chunk-seconds", type=int, default=None, help="Max seconds per audio chunk for transcription.")
        parser.add_argument("--translate-model", default=None, help="Chat model for translation.")
        parser.add_argument("--translate-batch-size", type=int, default=None, help="Max subtitle lines per translation batch.")
        parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to the configuration YAML file.")
        parser.add_argument("--temp-dir", default=None, help="Override the temporary directory from the config file.")
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        return parser

    def load_app_config(self, args: argparse.Namespace) -> AppConfig:
        """
        Loads the YAML file (optional when left at its default), the environment
        and the CLI overrides into one AppConfig.
        """
        file_config = {}
        if args.config != DEFAULT_CONFIG_PATH or os.path.exists(args.config):
            file_config = ConfigLoader().load_config(args.config)
        else:
            logger.info(f"No {DEFAULT_CONFIG_PATH} found; using defaults and environment.")

        config = AppConfig.from_sources(file_config)
        return config.with_overrides(
            temp_dir=args.temp_dir,
            burn_in=args.burn_in,
            bilingual=args.bilingual,
            font_dir=args.font_dir,
            font_name=args.font_name,
            font_size=args.font_size,
            whisper_model=args.whisper_model,
            chunk_seconds=args.chunk_seconds,
            translate_model=args.translate_model,
            translate_batch_size=args.translate_batch_size
        )

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the generator."""
        args = self.parser.parse_args(argv)
        load_dotenv(override=False)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        setup_logging(log_level=log_level, log_dir=None)

        try:
            config = self.load_app_config(args)
        except (ConfigurationError, FileNotFoundError) as e:
            logger.critical(f"Failed to load configuration: {e}")
            sys.exit(1)

        setup_logging(log_level=log_level, log_dir=config.log_dir, log_file=config.log_file)

        if not os.path.isfile(args.input):
            logger.critical(f"Input file not found or is not a file: {args.input}")
            sys.exit(1)
        if not args.input.lower().endswith(".mp4"):
            logger.warning("Input is not .mp4; proceeding anyway.")

        output_video = None
        if args.output is not None and args.output not in (AUTO_OUTPUT, ""):
            output_video = args.output
        elif args.output is not None:
            config = config.with_overrides(burn_in=True)

        try:
            generator = build_generator(config)
            srt_path, video_path = generator.generate(args.input, output_srt=args.output_srt, output_video=output_video)
            if video_path:
                logger.info(f"Done. SRT: {srt_path} | Video: {video_path}")
            else:
                logger.info(f"Done. SRT written to {srt_path}")
            sys.exit(0)
        except CaptionerError as e:
            logger.error(f"A captioning error occurred: {e}")
            sys.exit(1)
        except FileNotFoundError as e:
            logger.error(str(e))
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2)


def main() -> None:
    CLIHandler().run()
