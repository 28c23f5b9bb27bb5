"""Capabilities package - the speaker interface and its two backends."""

from .base import Speaker
from .native import NativeSpeaker
from .foreign import ForeignSpeaker

__all__ = [
    "Speaker",
    "NativeSpeaker",
    "ForeignSpeaker",
]
