"""In-process stand-ins for the external services and ffmpeg."""

import os
from typing import Callable, Dict, List, Optional

from captioner.exceptions import CountMismatch, MalformedResponse
from captioner.models import Segment, TranscriptionResult
from captioner.transcriber import Transcriber
from captioner.translator import Translator


class FakeTranslator(Translator):
    """Records calls; bulk replies come from `batch_reply`, single ones from `single_reply`."""

    def __init__(
        self,
        batch_reply: Optional[Callable[[List[str]], List[str]]] = None,
        single_reply: Optional[Callable[[str], str]] = None
    ):
        self.batch_reply = batch_reply or (lambda texts: [f"T({t})" for t in texts])
        self.single_reply = single_reply or (lambda text: f"S({text})")
        self.batch_calls: List[List[str]] = []
        self.single_calls: List[str] = []

    def translate_batch(self, texts):
        self.batch_calls.append(list(texts))
        result = self.batch_reply(list(texts))
        if len(result) != len(texts):
            raise CountMismatch(len(texts), len(result))
        return result

    def translate(self, text):
        self.single_calls.append(text)
        return self.single_reply(text)


def always_malformed(texts):
    raise MalformedResponse("not json")


class FakeAudioExtractor:
    """Pretends to be ffmpeg: writes placeholder files and reports a fixed duration."""

    def __init__(self, duration: float):
        self.duration = duration
        self.chunks = []
        self.extracted = []

    def probe_duration(self, media_path):
        return self.duration

    def extract_audio(self, video_filepath, output_audio_dir, output_filename=None):
        path = os.path.join(output_audio_dir, f"{output_filename or 'audio'}.wav")
        with open(path, "wb") as f:
            f.write(b"RIFF")
        self.extracted.append(path)
        return path

    def extract_chunk(self, audio_path, chunk, output_dir):
        path = os.path.join(output_dir, f"chunk_{chunk.index:05d}.wav")
        with open(path, "wb") as f:
            f.write(b"RIFF")
        self.chunks.append((chunk.index, chunk.start, chunk.duration, path))
        return path


class ScriptedTranscriber(Transcriber):
    """Returns canned segments per call, in order."""

    def __init__(self, per_call: List[List[Segment]]):
        self.per_call = list(per_call)
        self.paths: List[str] = []

    def transcribe(self, audio_path):
        self.paths.append(audio_path)
        segments = self.per_call.pop(0) if self.per_call else []
        return TranscriptionResult(language="ja", segments=segments, original_audio_path=audio_path)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Minimal requests.Session replacement that replays queued responses."""

    def __init__(self, responses: List[object]):
        self.responses = list(responses)
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, object]] = []

    def post(self, url, **kwargs):
        files = kwargs.get("files")
        if files:
            name, stream, mime = files["file"]
            kwargs = dict(kwargs, upload=(name, stream.read(), mime))
        self.calls.append(dict(kwargs, url=url))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
