"""
Speech Input and Output Collaborators.

Speaker wraps a pyttsx3 engine behind a single worker thread so utterances
never overlap: a new ``speak()`` cancels whatever is queued or playing and
each utterance reports completion through a callback.

MicrophoneSpeechInput wraps ``speech_recognition`` background listening and
delivers finalized transcripts to a callback.
"""

import logging
import queue
import threading
from typing import Optional

import pyttsx3
import speech_recognition as sr

import config
from src.errors import CapabilityUnavailableError, PermissionDeniedError, SpeechOutputError

logger = logging.getLogger(__name__)


class _Utterance:
    def __init__(self, text: str, on_complete=None):
        self.text = text
        self.on_complete = on_complete
        self.cancelled = False
        self._done = False

    def finish(self):
        if self._done:
            return
        self._done = True
        if self.on_complete is not None:
            try:
                self.on_complete(self.cancelled)
            except Exception:
                logger.exception("Speech completion callback failed")


class Speaker:
    """
    Serialized text-to-speech output.

    Args:
        language: Language tag used to pick a voice. Defaults to config.SPEECH_LANGUAGE.
        rate: Speaking rate. Defaults to config.SPEECH_RATE.
        volume: Volume in [0, 1]. Defaults to config.SPEECH_VOLUME.
        engine: Pre-built pyttsx3-compatible engine (mainly for tests).
    """

    def __init__(self, language: str = None, rate: int = None,
                 volume: float = None, engine=None):
        self.language = language or config.SPEECH_LANGUAGE

        if engine is None:
            try:
                engine = pyttsx3.init()
            except Exception as exc:
                raise CapabilityUnavailableError(
                    f"No text-to-speech engine available: {exc}") from exc
        self._engine = engine
        self._engine.setProperty('rate', rate if rate is not None else config.SPEECH_RATE)
        self._engine.setProperty('volume', volume if volume is not None else config.SPEECH_VOLUME)
        self._select_voice()

        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._current = None
        self._alive = True
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def _select_voice(self):
        """Pick the first installed voice matching the language tag."""
        prefix = self.language.split("-")[0].lower()
        try:
            voices = self._engine.getProperty('voices') or []
        except Exception as exc:
            logger.warning("Could not list voices (%s); using the default voice.", exc)
            return

        for voice in voices:
            # espeak reports languages as bytes prefixed with a priority byte
            languages = [lang.decode(errors="ignore") if isinstance(lang, bytes) else str(lang)
                         for lang in (getattr(voice, "languages", None) or [])]
            if any(lang.lstrip("\x05").lower().startswith(prefix) for lang in languages):
                self._engine.setProperty('voice', voice.id)
                return
        logger.warning("No installed voice for %r; using the default voice.", self.language)

    def speak(self, text: str, on_complete=None):
        """
        Queue an utterance, cancelling any utterance in progress.

        Args:
            text: Text to speak.
            on_complete: Called with ``cancelled: bool`` once the utterance
                has finished, failed, or been cancelled.

        Raises:
            SpeechOutputError: If the speaker has been shut down.
        """
        if not self._alive:
            raise SpeechOutputError("Speaker has been shut down")
        self.cancel()
        self._queue.put(_Utterance(text, on_complete))

    def cancel(self):
        """Drop queued utterances and stop the one being spoken."""
        while True:
            try:
                pending = self._queue.get_nowait()
            except queue.Empty:
                break
            if pending is not None:
                pending.cancelled = True
                pending.finish()

        with self._lock:
            current = self._current
        if current is not None:
            current.cancelled = True
            try:
                self._engine.stop()
            except Exception as exc:
                logger.warning("Could not stop speech output: %s", exc)

    @property
    def is_speaking(self) -> bool:
        with self._lock:
            return self._current is not None

    def _worker(self):
        while self._alive:
            try:
                utterance = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue

            if utterance is None:  # shutdown sentinel
                break

            with self._lock:
                self._current = utterance
            try:
                if not utterance.cancelled:
                    self._engine.say(utterance.text)
                    self._engine.runAndWait()
            except Exception as exc:
                logger.error("Speech output failed: %s", exc)
            finally:
                with self._lock:
                    self._current = None
            utterance.finish()

    def shutdown(self):
        """Cancel output and stop the worker thread."""
        self.cancel()
        self._alive = False
        self._queue.put(None)
        self._thread.join(timeout=1.0)


class ListeningSession:
    """Handle for one background listening session."""

    def __init__(self):
        self.active = True
        self._stopper = None

    def stop(self):
        if not self.active:
            return
        self.active = False
        if self._stopper is not None:
            self._stopper(wait_for_stop=False)


class MicrophoneSpeechInput:
    """
    Speech-to-text from the default microphone.

    Args:
        language: Recognition language. Defaults to config.SPEECH_LANGUAGE.
        phrase_time_limit: Max seconds per phrase. Defaults to config.PHRASE_TIME_LIMIT.
        recognizer: speech_recognition.Recognizer instance (mainly for tests).
        microphone_factory: Callable returning an audio source. Defaults to sr.Microphone.
    """

    def __init__(self, language: str = None, phrase_time_limit: float = None,
                 recognizer=None, microphone_factory=None):
        self.language = language or config.SPEECH_LANGUAGE
        self.phrase_time_limit = phrase_time_limit or config.PHRASE_TIME_LIMIT
        self.recognizer = recognizer or sr.Recognizer()
        self._microphone_factory = microphone_factory or sr.Microphone

    def _open_microphone(self):
        try:
            microphone = self._microphone_factory()
            with microphone as source:
                self.recognizer.adjust_for_ambient_noise(
                    source, duration=config.AMBIENT_NOISE_DURATION)
        except AttributeError as exc:
            # speech_recognition raises AttributeError when PyAudio is missing
            raise CapabilityUnavailableError(f"Microphone input unavailable: {exc}") from exc
        except OSError as exc:
            raise PermissionDeniedError(f"Cannot open microphone: {exc}") from exc
        return microphone

    def _recognize(self, audio) -> Optional[str]:
        """Return the transcript, or None if the audio was unintelligible."""
        try:
            return self.recognizer.recognize_google(audio, language=self.language)
        except sr.UnknownValueError:
            return None
        except sr.RequestError as exc:
            raise CapabilityUnavailableError(f"Speech recognition service unavailable: {exc}") from exc

    def start(self, on_transcript, on_error=None) -> ListeningSession:
        """
        Start listening in the background.

        Args:
            on_transcript: Called with ``(text, is_final)`` per recognized phrase.
            on_error: Called with a BridgeError if recognition fails mid-session.

        Returns:
            ListeningSession whose ``stop()`` ends the session.
        """
        microphone = self._open_microphone()
        session = ListeningSession()

        def callback(recognizer, audio):
            if not session.active:
                return
            try:
                text = self._recognize(audio)
            except CapabilityUnavailableError as exc:
                logger.error("%s", exc)
                if on_error is not None:
                    on_error(exc)
                return
            if text and session.active:
                on_transcript(text, True)

        session._stopper = self.recognizer.listen_in_background(
            microphone, callback, phrase_time_limit=self.phrase_time_limit)
        return session

    def listen_once(self, timeout: float = None) -> Optional[str]:
        """Block until one phrase is heard and return its transcript."""
        microphone = self._open_microphone()
        try:
            with microphone as source:
                audio = self.recognizer.listen(source, timeout=timeout,
                                               phrase_time_limit=self.phrase_time_limit)
        except sr.WaitTimeoutError:
            return None
        return self._recognize(audio)
