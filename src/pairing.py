"""
Participant Pairing State Machine.

Collects the two participants' profiles from their spoken self-descriptions
and, once both are known, selects a conversion mode from the compatibility
matrix. A manual override lets the user assign both profiles directly.

All events (finalized transcripts, collaborator errors, elapsed waits,
speech-completion notifications, user actions) are handled to completion
under one lock, so they never interleave even though collaborators deliver
them from their own threads.
"""

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Tuple

import config
from src.compatibility import CompatibilityMatrix, ModeId
from src.errors import (
    BridgeError,
    CapabilityUnavailableError,
    ErrorKind,
    InvalidTransitionError,
    Notice,
    SpeechOutputError,
    notice_from_error,
)
from src.profiles import ProfileId, detect_profile
from src.scheduling import TimerScheduler

logger = logging.getLogger(__name__)


class PairingState(enum.Enum):
    AWAITING_PERSON1 = "awaiting-person1"
    AWAITING_PERSON2 = "awaiting-person2"
    PAIRED = "paired"
    MANUAL_OVERRIDE = "manual-override"


@dataclass
class Session:
    """Per-session pairing data and the handles of in-flight activity."""
    participant1_profile: Optional[ProfileId] = None
    participant2_profile: Optional[ProfileId] = None
    selected_mode: Optional[ModeId] = None
    available_modes: Tuple[ModeId, ...] = ()
    has_welcomed: bool = False
    last_transcript: str = ""
    detection: object = None
    pending_waits: list = field(default_factory=list)

    def set_participant1(self, profile):
        self.participant1_profile = ProfileId(profile)

    def set_participant2(self, profile):
        if self.participant1_profile is None:
            raise InvalidTransitionError("Participant 1 must be set before participant 2")
        self.participant2_profile = ProfileId(profile)

    def set_available_modes(self, modes):
        """Store the modes for the pair and select the default one."""
        self.available_modes = tuple(modes)
        self.selected_mode = self.available_modes[0] if self.available_modes else None

    def select_mode(self, mode):
        mode = ModeId(mode)
        if mode not in self.available_modes:
            raise InvalidTransitionError(f"Mode {mode.value} is not available for this pair")
        self.selected_mode = mode

    @property
    def has_both_profiles(self) -> bool:
        return (self.participant1_profile is not None and
                self.participant2_profile is not None)

    def reset(self):
        self.participant1_profile = None
        self.participant2_profile = None
        self.selected_mode = None
        self.available_modes = ()
        self.has_welcomed = False
        self.last_transcript = ""
        self.detection = None
        self.pending_waits = []


class PairingStateMachine:
    """
    Voice-driven pairing of two participants.

    Args:
        speech_input: Object with ``start(on_transcript, on_error)`` returning a
            handle with ``stop()``. None means speech input is unavailable.
        speaker: Object with ``speak(text, on_complete)`` and ``cancel()``, or None.
        scheduler: Object with ``call_later(delay, callback)`` returning a
            handle with ``cancel()``. Defaults to TimerScheduler.
        matrix: CompatibilityMatrix to query. Defaults to the standard table.
        on_notice: Called with each Notice. Defaults to logging it.
        on_state_change: Called with ``(old_state, new_state)`` on transitions.
    """

    def __init__(self, speech_input=None, speaker=None, scheduler=None,
                 matrix: CompatibilityMatrix = None, on_notice=None,
                 on_state_change=None):
        self.speech_input = speech_input
        self.speaker = speaker
        self.scheduler = scheduler or TimerScheduler()
        self.matrix = matrix or CompatibilityMatrix()
        self.on_notice = on_notice
        self.on_state_change = on_state_change

        self.state = PairingState.AWAITING_PERSON1
        self.session = Session()
        self.notices = []

        # Bumped on every reset; stale waits and callbacks compare against it
        self._generation = 0
        self._lock = threading.RLock()

    # ─── Events ──────────────────────────────────────────────────────────────

    def start(self):
        """Greet once per session, then open the detection phase."""
        with self._lock:
            if not self._is_detecting_state():
                return
            if not self.session.has_welcomed and self.session.participant1_profile is None:
                self.session.has_welcomed = True
                self._wait(config.WELCOME_DELAY,
                           lambda: self._announce(config.WELCOME_PROMPT,
                                                  then=self._begin_detection))
            else:
                self._begin_detection()

    def handle_transcript(self, text: str, is_final: bool = True) -> Optional[ProfileId]:
        """
        Feed one transcript update from speech input.

        Args:
            text: Recognized text.
            is_final: Interim updates are only kept for display.

        Returns:
            The profile detected and assigned by this transcript, if any.
        """
        with self._lock:
            self.session.last_transcript = text or ""
            if not is_final or not self._is_detecting_state():
                return None

            profile = detect_profile(text)
            if profile is None:
                return None

            if self.state is PairingState.AWAITING_PERSON1:
                self._on_person1_detected(profile)
            else:
                self._on_person2_detected(profile)
            return profile

    def handle_detection_error(self, error: BridgeError):
        """Report a speech-input failure without leaving a well-defined state."""
        with self._lock:
            self._notify(notice_from_error(error))
            self._stop_detection()
            if isinstance(error, CapabilityUnavailableError):
                self._cancel_activity()
                self._set_state(PairingState.MANUAL_OVERRIDE)

    def request_manual_selection(self):
        """Abandon voice pairing in favour of direct assignment."""
        with self._lock:
            self._cancel_activity()
            self._set_state(PairingState.MANUAL_OVERRIDE)

    def assign_profiles(self, person1, person2):
        """Directly assign both profiles (manual override only)."""
        with self._lock:
            self._require(PairingState.MANUAL_OVERRIDE)
            self.session.set_available_modes(())
            self.session.set_participant1(person1)
            self.session.set_participant2(person2)

    def confirm_manual_selection(self) -> Tuple[ModeId, ...]:
        """
        Pair the manually assigned profiles.

        Returns:
            The available modes; empty if the pair has no compatible mode,
            in which case the machine stays in manual override.
        """
        with self._lock:
            self._require(PairingState.MANUAL_OVERRIDE)
            if not self.session.has_both_profiles:
                raise InvalidTransitionError("Both participants must be selected")
            return self._pair()

    def select_mode(self, mode) -> ModeId:
        """Override the default mode with another available one."""
        with self._lock:
            self._require(PairingState.PAIRED)
            self.session.select_mode(mode)
            return self.session.selected_mode

    def restart(self):
        """Forget both profiles and start voice pairing again."""
        with self._lock:
            self._cancel_activity()
            self.session.reset()
            self._set_state(PairingState.AWAITING_PERSON1)
            self.start()

    def close(self):
        """End the session: stop listening, waiting and speaking."""
        with self._lock:
            self._cancel_activity()

    # ─── Queries ─────────────────────────────────────────────────────────────

    @property
    def is_paired(self) -> bool:
        return self.state is PairingState.PAIRED

    @property
    def selected_mode(self) -> Optional[ModeId]:
        return self.session.selected_mode

    @property
    def available_modes(self) -> Tuple[ModeId, ...]:
        return self.session.available_modes

    @property
    def is_listening(self) -> bool:
        return self.session.detection is not None

    # ─── Transitions ─────────────────────────────────────────────────────────

    def _on_person1_detected(self, profile: ProfileId):
        self.session.set_participant1(profile)
        self._stop_detection()
        self._set_state(PairingState.AWAITING_PERSON2)
        self._announce(
            config.PERSON1_DETECTED_PROMPT.format(label=profile.label),
            then=lambda: self._wait(config.LISTEN_RESUME_DELAY, self._begin_detection))

    def _on_person2_detected(self, profile: ProfileId):
        self.session.set_participant2(profile)
        self._stop_detection()
        if self._pair():
            follow_up = config.READY_PROMPT.format(mode=self.session.selected_mode.label)
        else:
            follow_up = config.NO_COMPATIBLE_MODE_PROMPT
        self._announce(config.PERSON2_DETECTED_PROMPT.format(label=profile.label),
                       then=lambda: self._announce(follow_up))

    def _pair(self) -> Tuple[ModeId, ...]:
        first = self.session.participant1_profile
        second = self.session.participant2_profile
        modes = self.matrix.lookup(first, second)
        self.session.set_available_modes(modes)
        if modes:
            self._set_state(PairingState.PAIRED)
        else:
            self._notify(Notice(ErrorKind.NO_MATCH,
                                f"No compatible mode for {first.value} and {second.value}"))
        return modes

    def _set_state(self, state: PairingState):
        previous, self.state = self.state, state
        if previous is not state:
            logger.debug("Pairing state %s -> %s", previous.value, state.value)
            if self.on_state_change is not None:
                self.on_state_change(previous, state)

    def _require(self, state: PairingState):
        if self.state is not state:
            raise InvalidTransitionError(
                f"Operation requires state {state.value}, current state is {self.state.value}")

    def _is_detecting_state(self) -> bool:
        if self.state is PairingState.AWAITING_PERSON1:
            return self.session.participant1_profile is None
        if self.state is PairingState.AWAITING_PERSON2:
            return self.session.participant2_profile is None
        return False

    def _notify(self, notice: Notice):
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)
        else:
            logger.warning("[%s] %s", notice.kind.value, notice.message)

    # ─── Detection sessions ──────────────────────────────────────────────────

    def _begin_detection(self):
        """Open a detection session for the current phase, replacing any other."""
        if not self._is_detecting_state():
            return
        self._stop_detection()
        if self.speech_input is None:
            self.handle_detection_error(CapabilityUnavailableError("Speech input is not available"))
            return

        owner = []

        def on_transcript(text, is_final=True):
            with self._lock:
                if not owner or self.session.detection is not owner[0]:
                    return
                self.handle_transcript(text, is_final)

        def on_error(error):
            with self._lock:
                if not owner or self.session.detection is not owner[0]:
                    return
                self.handle_detection_error(error)

        try:
            handle = self.speech_input.start(on_transcript, on_error)
        except BridgeError as exc:
            self.handle_detection_error(exc)
            return
        owner.append(handle)
        self.session.detection = handle

    def _stop_detection(self):
        handle, self.session.detection = self.session.detection, None
        if handle is not None:
            handle.stop()

    # ─── Waits and announcements ─────────────────────────────────────────────

    def _wait(self, delay: float, action):
        """Run ``action`` after ``delay`` unless the session is reset first."""
        generation = self._generation
        handle = []

        def fire():
            with self._lock:
                if generation != self._generation:
                    return
                self.session.pending_waits = [
                    h for h in self.session.pending_waits if h is not handle[0]]
                action()

        handle.append(self.scheduler.call_later(delay, fire))
        self.session.pending_waits.append(handle[0])
        return handle[0]

    def _announce(self, text: str, then=None):
        """
        Speak ``text`` and continue with ``then`` once speech completes.

        Completion is taken from the speaker's callback; the fallback wait
        only bounds how long a lost completion event can stall the flow.
        A cancelled utterance does not continue.
        """
        if self.speaker is None:
            if then is not None:
                then()
            return

        generation = self._generation
        finished = []
        fallback = []

        def finish(cancelled=False):
            with self._lock:
                if finished or generation != self._generation:
                    return
                finished.append(True)
                if fallback:
                    fallback[0].cancel()
                    self.session.pending_waits = [
                        h for h in self.session.pending_waits if h is not fallback[0]]
                if then is not None and not cancelled:
                    then()

        if then is not None:
            fallback.append(self._wait(config.SPEECH_COMPLETION_TIMEOUT, finish))
        try:
            self.speaker.speak(text, on_complete=finish)
        except SpeechOutputError as exc:
            self._notify(notice_from_error(exc))
            finish()

    def _cancel_activity(self):
        self._generation += 1
        self._stop_detection()
        for handle in self.session.pending_waits:
            handle.cancel()
        self.session.pending_waits = []
        if self.speaker is not None:
            self.speaker.cancel()
