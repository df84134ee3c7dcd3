from .cipher import (
    CipherOp,
    CipherOperationSequence,
    PlayerProgram,
    PlayerRef,
    Reverse,
    Splice,
    Swap,
)
from .common import (
    UNKNOWN,
    ChannelRef,
    Maybe,
    SubscriberCount,
    Thumbnail,
    Unknown,
    ViewCount,
    truncate_significant,
)
from .listing import (
    Availability,
    Channel,
    ChannelBadge,
    ListingPage,
    Playlist,
    VideoSummary,
)
from .stream import AudioTrack, CipherPayload, Stream, StreamKind, VideoTrack
from .video import Playability, PlayabilityStatus, PublishInfo, Video

__all__ = [
    "UNKNOWN",
    "AudioTrack",
    "Availability",
    "Channel",
    "ChannelBadge",
    "ChannelRef",
    "CipherOp",
    "CipherOperationSequence",
    "CipherPayload",
    "ListingPage",
    "Maybe",
    "Playability",
    "PlayabilityStatus",
    "PlayerProgram",
    "PlayerRef",
    "Playlist",
    "PublishInfo",
    "Reverse",
    "Splice",
    "Stream",
    "StreamKind",
    "SubscriberCount",
    "Swap",
    "Thumbnail",
    "Unknown",
    "Video",
    "VideoSummary",
    "VideoTrack",
    "ViewCount",
    "truncate_significant",
]
