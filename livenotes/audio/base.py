"""Abstract audio source used by the sampling loop."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.audio import AudioClip


class AbstractAudioSource(ABC):
    """Anything that can hand out the most recent window of captured audio."""

    @abstractmethod
    def get_last_window_clip(self, window_seconds: float) -> Optional[AudioClip]:
        """Encode the last `window_seconds` of audio as a clip.

        Returns:
            The clip, or None if nothing meaningful has been captured yet.
            Neither case is an error.
        """
