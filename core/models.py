# core/models.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NowPlayingSnapshot:
    # Every field is optional: a producer only fills what it observed.
    title: Optional[str] = None
    artist: Optional[str] = None
    artwork_data: Optional[bytes] = None
    artwork_url: Optional[str] = None
    playback_rate: Optional[float] = None

    @property
    def is_playing(self) -> Optional[bool]:
        if self.playback_rate is None:
            return None
        return self.playback_rate > 0
