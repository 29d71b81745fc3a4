"""
Tests for the speech output and speech input collaborators.
"""

import threading

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import speech_recognition as sr

import src.speech as speech
from src.errors import CapabilityUnavailableError, PermissionDeniedError, SpeechOutputError
from src.speech import MicrophoneSpeechInput, Speaker

WAIT = 2.0


class FakeVoice:
    def __init__(self, voice_id, languages):
        self.id = voice_id
        self.languages = languages


class FakeEngine:
    """Mock pyttsx3 engine. With ``blocking`` an utterance plays until stop()."""

    def __init__(self, voices=(), blocking=False, fail=False):
        self.properties = {"voices": list(voices)}
        self.blocking = blocking
        self.fail = fail
        self.said = []
        self.started = threading.Event()
        self._release = threading.Event()
        self.stop_count = 0

    def setProperty(self, name, value):
        self.properties[name] = value

    def getProperty(self, name):
        return self.properties.get(name)

    def say(self, text):
        if self.fail:
            raise RuntimeError("audio device lost")
        self.said.append(text)

    def runAndWait(self):
        self.started.set()
        if self.blocking:
            self._release.wait(WAIT)

    def stop(self):
        self.stop_count += 1
        self._release.set()


class Completion:
    """Collects on_complete calls and lets the test wait for them."""

    def __init__(self):
        self.event = threading.Event()
        self.cancelled = None

    def __call__(self, cancelled):
        self.cancelled = cancelled
        self.event.set()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def speaker(engine):
    s = Speaker(engine=engine)
    yield s
    s.shutdown()


class TestSpeaker:
    """Tests for serialized text-to-speech."""

    def test_properties_applied(self, engine, speaker):
        assert engine.properties["rate"] == speech.config.SPEECH_RATE
        assert engine.properties["volume"] == speech.config.SPEECH_VOLUME

    def test_speak_completes(self, engine, speaker):
        done = Completion()
        speaker.speak("Xin chào", on_complete=done)
        assert done.event.wait(WAIT)
        assert done.cancelled is False
        assert engine.said == ["Xin chào"]

    def test_new_utterance_cancels_current(self):
        engine = FakeEngine(blocking=True)
        speaker = Speaker(engine=engine)
        try:
            first, second = Completion(), Completion()
            speaker.speak("một", on_complete=first)
            assert engine.started.wait(WAIT)

            speaker.speak("hai", on_complete=second)
            assert first.event.wait(WAIT)
            assert first.cancelled is True
            assert second.event.wait(WAIT)
            assert second.cancelled is False
            assert engine.stop_count >= 1
            assert engine.said == ["một", "hai"]
        finally:
            speaker.shutdown()

    def test_cancel_when_idle(self, engine, speaker):
        speaker.cancel()
        assert engine.stop_count == 0
        assert not speaker.is_speaking

    def test_engine_failure_still_completes(self):
        speaker = Speaker(engine=FakeEngine(fail=True))
        try:
            done = Completion()
            speaker.speak("xin chào", on_complete=done)
            assert done.event.wait(WAIT)
        finally:
            speaker.shutdown()

    def test_speak_after_shutdown(self, engine):
        speaker = Speaker(engine=engine)
        speaker.shutdown()
        with pytest.raises(SpeechOutputError):
            speaker.speak("xin chào")

    def test_voice_selected_by_language(self):
        voices = [FakeVoice("english", [b"\x05en"]), FakeVoice("vietnam", [b"\x05vi"])]
        engine = FakeEngine(voices=voices)
        speaker = Speaker(language="vi-VN", engine=engine)
        speaker.shutdown()
        assert engine.properties["voice"] == "vietnam"

    def test_missing_voice_keeps_default(self):
        engine = FakeEngine(voices=[FakeVoice("english", ["en_US"])])
        speaker = Speaker(language="vi-VN", engine=engine)
        speaker.shutdown()
        assert "voice" not in engine.properties

    def test_no_engine(self, monkeypatch):
        def broken_init():
            raise RuntimeError("no driver")
        monkeypatch.setattr(speech.pyttsx3, "init", broken_init)
        with pytest.raises(CapabilityUnavailableError):
            Speaker()


class FakeMicrophone:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeRecognizer:
    """
    Mock speech_recognition.Recognizer. Audio objects are either the
    transcript itself, None (unintelligible) or an exception to raise.
    """

    def __init__(self, heard=None):
        self.heard = heard
        self.callback = None
        self.stop_calls = []
        self.calibrated = False

    def adjust_for_ambient_noise(self, source, duration=1):
        self.calibrated = True

    def listen_in_background(self, source, callback, phrase_time_limit=None):
        self.callback = callback

        def stopper(wait_for_stop=True):
            self.stop_calls.append(wait_for_stop)
        return stopper

    def listen(self, source, timeout=None, phrase_time_limit=None):
        if isinstance(self.heard, Exception):
            raise self.heard
        return self.heard

    def recognize_google(self, audio, language=None):
        if isinstance(audio, Exception):
            raise audio
        if audio is None:
            raise sr.UnknownValueError()
        return audio


def make_input(recognizer, factory=FakeMicrophone):
    return MicrophoneSpeechInput(recognizer=recognizer, microphone_factory=factory)


class TestMicrophoneSpeechInput:
    """Tests for background listening and one-shot recognition."""

    def test_transcript_delivered(self):
        recognizer = FakeRecognizer()
        heard = []
        make_input(recognizer).start(lambda text, final: heard.append((text, final)))
        assert recognizer.calibrated

        recognizer.callback(recognizer, "tôi bị mù")
        assert heard == [("tôi bị mù", True)]

    def test_unintelligible_audio_skipped(self):
        recognizer = FakeRecognizer()
        heard = []
        make_input(recognizer).start(lambda text, final: heard.append(text))
        recognizer.callback(recognizer, None)
        assert heard == []

    def test_service_failure_reported(self):
        recognizer = FakeRecognizer()
        errors = []
        make_input(recognizer).start(lambda text, final: None, errors.append)
        recognizer.callback(recognizer, sr.RequestError("offline"))
        assert isinstance(errors[0], CapabilityUnavailableError)

    def test_stop(self):
        recognizer = FakeRecognizer()
        heard = []
        session = make_input(recognizer).start(lambda text, final: heard.append(text))
        session.stop()
        session.stop()
        recognizer.callback(recognizer, "tôi bị điếc")
        assert recognizer.stop_calls == [False]
        assert heard == []
        assert not session.active

    def test_missing_audio_backend(self):
        def no_pyaudio():
            raise AttributeError("Could not find PyAudio")
        with pytest.raises(CapabilityUnavailableError):
            make_input(FakeRecognizer(), no_pyaudio).start(lambda text, final: None)

    def test_microphone_refused(self):
        def refused():
            raise OSError("device busy")
        with pytest.raises(PermissionDeniedError):
            make_input(FakeRecognizer(), refused).start(lambda text, final: None)

    def test_listen_once(self):
        assert make_input(FakeRecognizer(heard="xin chào")).listen_once() == "xin chào"

    def test_listen_once_timeout(self):
        recognizer = FakeRecognizer(heard=sr.WaitTimeoutError("silence"))
        assert make_input(recognizer).listen_once(timeout=1) is None
