"""Stream descriptors of a video.

A ``Stream`` is a tagged value: ``kind`` says which tracks it carries
and exactly one of ``url`` / ``cipher`` locates the media.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .common import UNKNOWN, Maybe


class StreamKind(str, Enum):
    MUXED = "muxed"  # audio + video in one container
    VIDEO_ONLY = "video_only"
    AUDIO_ONLY = "audio_only"


@dataclass(frozen=True)
class VideoTrack:
    width: Maybe[int] = UNKNOWN
    height: Maybe[int] = UNKNOWN
    fps: Maybe[int] = UNKNOWN
    quality_label: Maybe[str] = UNKNOWN


@dataclass(frozen=True)
class AudioTrack:
    sample_rate: Maybe[int] = UNKNOWN
    channels: Maybe[int] = UNKNOWN
    audio_quality: Maybe[str] = UNKNOWN


@dataclass(frozen=True)
class CipherPayload:
    """Decoded ``signatureCipher`` value.

    ``signature`` is the scrambled signature, ``signature_param`` the
    query parameter the deciphered value goes into and ``url`` the
    media URL still lacking that parameter.
    """

    url: str
    signature: str
    signature_param: str = "signature"


@dataclass(frozen=True)
class Stream:
    itag: int
    kind: StreamKind
    mime_type: str
    codecs: tuple[str, ...] = ()
    bitrate: Maybe[int] = UNKNOWN
    average_bitrate: Maybe[int] = UNKNOWN
    content_length: Maybe[int] = UNKNOWN
    duration_ms: Maybe[int] = UNKNOWN
    last_modified: Maybe[datetime] = UNKNOWN
    quality: Maybe[str] = UNKNOWN
    url: str | None = None
    cipher: CipherPayload | None = None
    video: VideoTrack | None = None
    audio: AudioTrack | None = None

    def __post_init__(self) -> None:
        if (self.url is None) == (self.cipher is None):
            raise ValueError(
                f"Stream itag={self.itag} needs exactly one of url / cipher"
            )
        if self.kind is StreamKind.MUXED:
            expected = (True, True)
        elif self.kind is StreamKind.VIDEO_ONLY:
            expected = (True, False)
        else:
            expected = (False, True)
        if (self.video is not None, self.audio is not None) != expected:
            raise ValueError(
                f"Stream itag={self.itag} tracks do not match kind {self.kind.value}"
            )

    @property
    def is_ciphered(self) -> bool:
        return self.cipher is not None

    @property
    def is_audio(self) -> bool:
        return self.audio is not None

    @property
    def is_video(self) -> bool:
        return self.video is not None
