"""
Tests for the output conversion engine.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from src.compatibility import ModeId
from src.conversion import ConversionEngine, OutputKind
from src.errors import ErrorKind, SpeechOutputError


class MockSpeaker:
    """Records utterances instead of playing them."""

    def __init__(self, fail=False):
        self.spoken = []
        self.fail = fail

    def speak(self, text, on_complete=None):
        if self.fail:
            raise SpeechOutputError("engine busy")
        self.spoken.append(text)


@pytest.fixture
def speaker():
    return MockSpeaker()


@pytest.fixture
def engine(speaker):
    return ConversionEngine(speaker)


class TestAudioOutput:
    """Tests for modes that end in speech."""

    def test_text_audio(self, engine, speaker):
        result = engine.convert(ModeId.TEXT_AUDIO, "Xin chào")
        assert result.kind is OutputKind.AUDIO
        assert result.text == 'Đang phát âm thanh: "Xin chào"'
        assert result.spoken_text == "Xin chào"
        assert speaker.spoken == ["Xin chào"]

    def test_empty_sign_input_uses_placeholder(self, engine, speaker):
        result = engine.convert(ModeId.SIGN_AUDIO, "")
        assert result.spoken_text == config.SIGN_INPUT_PLACEHOLDER
        assert speaker.spoken == [config.SIGN_INPUT_PLACEHOLDER]

    def test_sign_input_text_is_spoken(self, engine, speaker):
        engine.convert(ModeId.SIGN_AUDIO, "AB1")
        assert speaker.spoken == ["AB1"]

    def test_empty_text_input_is_not_spoken(self, engine, speaker):
        result = engine.convert(ModeId.TEXT_AUDIO, "")
        assert result.kind is OutputKind.AUDIO
        assert speaker.spoken == []

    def test_speak_failure_becomes_notice(self):
        engine = ConversionEngine(MockSpeaker(fail=True))
        result = engine.convert(ModeId.TEXT_AUDIO, "Xin chào")
        assert result.kind is OutputKind.AUDIO
        assert result.notice.kind is ErrorKind.TRANSIENT_OUTPUT_FAILURE

    def test_no_speaker(self):
        result = ConversionEngine().convert("text-audio", "hello")
        assert result.spoken_text == "hello"
        assert result.notice is None


class TestOtherOutputs:
    """Tests for sign and text output."""

    def test_audio_sign(self, engine, speaker):
        result = engine.convert(ModeId.AUDIO_SIGN, "hello")
        assert result.kind is OutputKind.SIGN
        assert result.text == "Chuyển đổi sang ngôn ngữ ký hiệu: hello"
        assert speaker.spoken == []

    def test_text_text_passthrough(self, engine, speaker):
        result = engine.convert(ModeId.TEXT_TEXT, "chào bạn")
        assert result.kind is OutputKind.TEXT
        assert result.text == "chào bạn"
        assert speaker.spoken == []

    def test_audio_text_passthrough(self, engine):
        assert engine.convert(ModeId.AUDIO_TEXT, "xin chào").text == "xin chào"

    def test_none_input(self, engine):
        assert engine.convert(ModeId.SIGN_TEXT, None).text == ""

    def test_unknown_mode(self, engine):
        with pytest.raises(ValueError):
            engine.convert("smell-text", "x")
