"""
Participant Profiles and Keyword Detection.

Declares the communication profiles a participant can describe and maps a
finalized speech transcript to one of them by keyword matching.
"""

import enum
import unicodedata
from dataclasses import dataclass
from typing import Optional, Tuple


class ProfileId(enum.Enum):
    NORMAL = "normal"
    BLIND = "blind"
    MUTE = "mute"
    DEAF = "deaf"
    MUTE_DEAF = "mute-deaf"

    @property
    def label(self) -> str:
        return get_definition(self).label


@dataclass(frozen=True)
class ProfileDefinition:
    profile: ProfileId
    keywords: Tuple[str, ...]
    label: str


# Declaration order is the match priority.
PROFILE_DEFINITIONS = (
    ProfileDefinition(ProfileId.NORMAL,
                      ("bình thường", "không có vấn đề", "khỏe"),
                      "Người bình thường"),
    ProfileDefinition(ProfileId.BLIND,
                      ("mù", "không nhìn thấy", "khiếm thị"),
                      "Người mù"),
    ProfileDefinition(ProfileId.MUTE,
                      ("câm", "không nói được", "khiếm khẩu"),
                      "Người câm"),
    ProfileDefinition(ProfileId.DEAF,
                      ("điếc", "không nghe được", "khiếm thính"),
                      "Người điếc"),
    ProfileDefinition(ProfileId.MUTE_DEAF,
                      ("câm và điếc", "câm điếc"),
                      "Người câm và điếc"),
)


def get_definition(profile: ProfileId) -> ProfileDefinition:
    """Return the static definition for a profile."""
    for definition in PROFILE_DEFINITIONS:
        if definition.profile is profile:
            return definition
    raise KeyError(profile)


def detect_profile(transcript: str) -> Optional[ProfileId]:
    """
    Detect a participant profile from a finalized transcript.

    Matching is case-insensitive and substring based: a keyword found inside
    a longer word still counts. Profiles are scanned in declaration order and,
    within a profile, keywords in declaration order; the first hit wins.

    Args:
        transcript: Finalized speech-to-text output.

    Returns:
        The matched ProfileId, or None when no keyword occurs.
    """
    if not transcript:
        return None

    lowered = unicodedata.normalize("NFC", transcript).lower()
    for definition in PROFILE_DEFINITIONS:
        for keyword in definition.keywords:
            if keyword in lowered:
                return definition.profile
    return None
