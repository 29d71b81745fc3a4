"""
Conversion Modes and the Compatibility Matrix.

A mode pairs an input modality with an output modality ("text-audio" reads
text in and speaks it out). The matrix lists, for an unordered pair of
participant profiles, the modes available to them; the first is the default.
"""

import enum
from typing import Tuple, Union

from src.profiles import ProfileId


class Modality(enum.Enum):
    TEXT = "text"
    AUDIO = "audio"
    SIGN = "sign"


_MODALITY_LABELS = {
    Modality.TEXT: "Văn bản",
    Modality.AUDIO: "Âm thanh",
    Modality.SIGN: "Ngôn ngữ ký hiệu",
}


class ModeId(enum.Enum):
    TEXT_AUDIO = "text-audio"
    AUDIO_TEXT = "audio-text"
    TEXT_TEXT = "text-text"
    AUDIO_AUDIO = "audio-audio"
    SIGN_AUDIO = "sign-audio"
    AUDIO_SIGN = "audio-sign"
    TEXT_SIGN = "text-sign"
    SIGN_TEXT = "sign-text"
    SIGN_SIGN = "sign-sign"

    @property
    def input_modality(self) -> Modality:
        return Modality(self.value.split("-")[0])

    @property
    def output_modality(self) -> Modality:
        return Modality(self.value.split("-")[1])

    @property
    def label(self) -> str:
        """Display label, e.g. 'Văn bản → Âm thanh'."""
        return (f"{_MODALITY_LABELS[self.input_modality]} → "
                f"{_MODALITY_LABELS[self.output_modality]}")

    @property
    def needs_microphone(self) -> bool:
        return self.input_modality is Modality.AUDIO or self is ModeId.SIGN_AUDIO

    @property
    def needs_camera(self) -> bool:
        return self.input_modality is Modality.SIGN


# Keyed by one ordering of each pair; lookups try both.
COMPATIBILITY_TABLE = {
    (ProfileId.NORMAL, ProfileId.BLIND): (ModeId.TEXT_AUDIO, ModeId.AUDIO_AUDIO),
    (ProfileId.NORMAL, ProfileId.MUTE): (ModeId.AUDIO_TEXT, ModeId.AUDIO_SIGN),
    (ProfileId.NORMAL, ProfileId.DEAF): (ModeId.AUDIO_TEXT, ModeId.AUDIO_SIGN),
    (ProfileId.BLIND, ProfileId.BLIND): (ModeId.AUDIO_AUDIO,),
    (ProfileId.MUTE, ProfileId.MUTE): (ModeId.TEXT_TEXT, ModeId.SIGN_SIGN,
                                       ModeId.AUDIO_AUDIO),
    (ProfileId.MUTE, ProfileId.DEAF): (ModeId.TEXT_TEXT, ModeId.TEXT_SIGN,
                                       ModeId.SIGN_SIGN),
    (ProfileId.DEAF, ProfileId.DEAF): (ModeId.TEXT_TEXT, ModeId.TEXT_SIGN,
                                       ModeId.SIGN_TEXT, ModeId.SIGN_SIGN),
    (ProfileId.DEAF, ProfileId.BLIND): (ModeId.TEXT_AUDIO, ModeId.SIGN_AUDIO),
    (ProfileId.MUTE_DEAF, ProfileId.MUTE_DEAF): (ModeId.TEXT_TEXT, ModeId.TEXT_SIGN,
                                                 ModeId.SIGN_TEXT, ModeId.SIGN_SIGN),
}


class CompatibilityMatrix:
    """Read-only, order-insensitive view over a compatibility table."""

    def __init__(self, table: dict = None):
        self._table = dict(COMPATIBILITY_TABLE if table is None else table)

    def lookup(self, first: Union[ProfileId, str],
               second: Union[ProfileId, str]) -> Tuple[ModeId, ...]:
        """
        Get the modes available to a pair of profiles.

        Args:
            first: Profile of one participant.
            second: Profile of the other participant.

        Returns:
            Tuple of ModeId with the default first; empty if the pair has
            no entry in either ordering.
        """
        first, second = ProfileId(first), ProfileId(second)
        modes = self._table.get((first, second))
        if modes is None:
            modes = self._table.get((second, first), ())
        return tuple(modes)

    def default_mode(self, first, second):
        """Return the default mode for a pair, or None."""
        modes = self.lookup(first, second)
        return modes[0] if modes else None

    def pairs(self):
        """Iterate over the pairs that have an entry."""
        return iter(self._table)
