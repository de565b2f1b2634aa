import pytest

from captioner.exceptions import FormattingError
from captioner.models import Cue, Segment
from captioner.subtitle_formatter import ASSFormatter, SRTFormatter, build_cues
from captioner.utils import format_time_ass, format_time_srt


def test_format_time_srt():
    assert format_time_srt(0.0) == "00:00:00,000"
    assert format_time_srt(1.234) == "00:00:01,234"
    assert format_time_srt(3661.234) == "01:01:01,234"
    assert format_time_srt(-5) == "00:00:00,000"


def test_format_time_ass():
    assert format_time_ass(0.0) == "0:00:00.00"
    assert format_time_ass(1.23) == "0:00:01.23"
    assert format_time_ass(3661.23) == "1:01:01.23"


def test_write_srt(tmp_path):
    path = tmp_path / "out.srt"
    cues = [Cue(0.0, 1.0, "你好"), Cue(2.5, 3.75, "世界")]
    SRTFormatter().format_subtitles(cues, str(path))
    expected = "1\n00:00:00,000 --> 00:00:01,000\n你好\n\n2\n00:00:02,500 --> 00:00:03,750\n世界\n\n"
    assert path.read_text(encoding="utf-8") == expected


def test_write_ass(tmp_path):
    path = tmp_path / "out.ass"
    cues = [Cue(0.0, 1.0, "{JA0}"), Cue(2.5, 3.75, "世界\nline2")]
    ASSFormatter(font_name="My, Font", font_size=30).format_subtitles(cues, str(path))
    content = path.read_text(encoding="utf-8")
    assert "Style: Default,My  Font,30," in content
    assert "Dialogue: 0,0:00:00.00,0:00:01.00,Default,,0,0,0,,(JA0)" in content
    assert "Dialogue: 0,0:00:02.50,0:00:03.75,Default,,0,0,0,,世界\\Nline2" in content
    assert "{JA0}" not in content


@pytest.mark.parametrize("bilingual,size", [(True, 30), (False, 36)])
def test_ass_default_font_size(bilingual, size):
    assert ASSFormatter(bilingual=bilingual).font_size == size


def test_write_failure_raises_formatting_error(tmp_path):
    with pytest.raises(FormattingError):
        SRTFormatter().format_subtitles([Cue(0, 1, "x")], str(tmp_path / "missing" / "out.srt"))


def test_build_cues_bilingual():
    segments = [Segment(0, 1, "おはよう"), Segment(1, 2, "こんにちは")]
    cues = build_cues(segments, ["早安", "你好"], bilingual=True)
    assert [(c.start_time, c.end_time, c.text) for c in cues] == [(0, 1, "早安\nおはよう"), (1, 2, "你好\nこんにちは")]


def test_build_cues_translation_only():
    cues = build_cues([Segment(0, 1, "おはよう")], ["早安"])
    assert cues[0].text == "早安"


def test_build_cues_length_mismatch():
    with pytest.raises(FormattingError):
        build_cues([Segment(0, 1, "a")], [])


def test_segment_rejects_inverted_times():
    with pytest.raises(ValueError):
        Segment(2.0, 1.0, "x")
