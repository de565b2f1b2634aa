"""Custom Exceptions for the Captioner application."""

from typing import Optional


class CaptionerError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(CaptionerError):
    """Exception raised for errors in configuration loading."""
    pass

class AudioExtractionError(CaptionerError):
    """Exception raised for errors during audio extraction or chunking."""
    pass

class FormattingError(CaptionerError):
    """Exception raised for errors during subtitle formatting."""
    pass

class RenderError(CaptionerError):
    """Exception raised when burning subtitles into a video fails."""
    pass

class FileSystemError(CaptionerError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass


class ServiceError(CaptionerError):
    """An external API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

class TransientServiceError(ServiceError):
    """Rate limit, 5xx or network failure. Expected to succeed on retry."""
    pass

class TerminalServiceError(ServiceError):
    """Auth, validation or any other failure that retrying will not fix."""
    pass


class TranscriptionError(CaptionerError):
    """Exception raised for errors during transcription."""
    pass

class TranscriptionEmptyChunk(TranscriptionError):
    """A chunk of audio came back with zero segments."""

    def __init__(self, chunk_index: int):
        super().__init__(f"Speech-to-text returned no segments for chunk {chunk_index}")
        self.chunk_index = chunk_index

class NoSegments(TranscriptionError):
    """The merged transcription is empty."""
    pass


class TranslationError(CaptionerError):
    """Exception raised for errors during translation."""
    pass

class ResponseFormatError(TranslationError):
    """The bulk translation reply could not be used as-is."""
    pass

class MalformedResponse(ResponseFormatError):
    """No translations array could be parsed out of the reply."""
    pass

class CountMismatch(ResponseFormatError):
    """The translations array does not match the number of requested lines."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected {expected} translations, got {actual}")
        self.expected = expected
        self.actual = actual

class TranslationIncomplete(TranslationError):
    """A line could not be translated after every recovery path was exhausted."""

    def __init__(self, index: int, reason: str = ""):
        message = f"Failed to translate line {index}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.index = index
