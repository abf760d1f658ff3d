"""Audio capture and buffering module."""

from .base import AbstractAudioSource
from .buffer import RollingAudioBuffer

__all__ = [
    'AbstractAudioSource',
    'RollingAudioBuffer',
]
