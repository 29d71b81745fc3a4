"""
Tests for timed waits and the error taxonomy.
"""

import threading

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.errors import (
    CapabilityUnavailableError, ErrorKind, InitializationTimeoutError,
    Notice, PermissionDeniedError, SpeechOutputError, notice_from_error,
)
from src.scheduling import TimerScheduler


class TestTimerScheduler:
    """Tests for cancelable waits."""

    def test_callback_runs(self):
        fired = threading.Event()
        TimerScheduler().call_later(0.01, fired.set)
        assert fired.wait(2.0)

    def test_cancelled_callback_never_runs(self):
        fired = threading.Event()
        handle = TimerScheduler().call_later(0.05, fired.set)
        handle.cancel()
        assert handle.cancelled
        assert not fired.wait(0.2)

    def test_negative_delay(self):
        fired = threading.Event()
        TimerScheduler().call_later(-1, fired.set)
        assert fired.wait(2.0)


class TestNotices:
    """Tests for error → notice conversion."""

    @pytest.mark.parametrize("error,kind", [
        (CapabilityUnavailableError("no mic"), ErrorKind.CAPABILITY_UNAVAILABLE),
        (PermissionDeniedError("blocked"), ErrorKind.PERMISSION_DENIED),
        (InitializationTimeoutError("slow"), ErrorKind.INITIALIZATION_TIMEOUT),
        (SpeechOutputError("busy"), ErrorKind.TRANSIENT_OUTPUT_FAILURE),
    ])
    def test_kind(self, error, kind):
        notice = notice_from_error(error)
        assert notice == Notice(kind, str(error))

    def test_empty_message_uses_class_name(self):
        assert notice_from_error(SpeechOutputError()).message == "SpeechOutputError"
