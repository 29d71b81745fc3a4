"""
Output Conversion Engine.

Decides how input text is presented for the selected mode: spoken aloud
(audio output), wrapped in a sign-rendering placeholder (sign output), or
passed through unchanged (text output).
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

import config
from src.compatibility import Modality, ModeId
from src.errors import Notice, SpeechOutputError, notice_from_error

logger = logging.getLogger(__name__)


class OutputKind(enum.Enum):
    AUDIO = "audio"
    SIGN = "sign"
    TEXT = "text"


@dataclass
class OutputResult:
    text: str
    kind: OutputKind
    spoken_text: Optional[str] = None
    notice: Optional[Notice] = None


class ConversionEngine:
    """
    Converts input text according to a conversion mode.

    Sign output is only a descriptor: no sign-language rendering is
    synthesized.

    Args:
        speaker: Object with ``speak(text)`` used for audio output; may be
            None, in which case audio output is described but not played.
    """

    def __init__(self, speaker=None):
        self.speaker = speaker

    def convert(self, mode: Union[ModeId, str], input_text: str) -> OutputResult:
        """
        Produce the output for one piece of input.

        Args:
            mode: Selected conversion mode.
            input_text: Text typed, transcribed or signed by the participant.

        Returns:
            OutputResult describing what is shown and what was spoken.
        """
        mode = ModeId(mode)
        input_text = input_text or ""

        if mode.output_modality is Modality.AUDIO:
            return self._to_audio(mode, input_text)

        if mode.output_modality is Modality.SIGN:
            return OutputResult(
                text=config.SIGN_RENDERING_TEMPLATE.format(text=input_text),
                kind=OutputKind.SIGN,
            )

        return OutputResult(text=input_text, kind=OutputKind.TEXT)

    def _to_audio(self, mode: ModeId, input_text: str) -> OutputResult:
        spoken = input_text
        if not spoken and mode.input_modality is Modality.SIGN:
            spoken = config.SIGN_INPUT_PLACEHOLDER

        result = OutputResult(
            text=config.AUDIO_ANNOUNCEMENT_TEMPLATE.format(text=spoken),
            kind=OutputKind.AUDIO,
            spoken_text=spoken,
        )
        if not spoken or self.speaker is None:
            return result

        try:
            self.speaker.speak(spoken)
        except SpeechOutputError as exc:
            logger.warning("Speech output failed: %s", exc)
            result.notice = notice_from_error(exc)
        return result
