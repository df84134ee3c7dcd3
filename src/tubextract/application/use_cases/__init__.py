from .browse import BrowseUseCase, WatchPage
from .extract_page import (
    PageExtractor,
    extract_channel,
    extract_player_ref,
    extract_playlist,
    extract_playlist_page,
    extract_video,
)
from .resolve_stream import StreamResolverUseCase

__all__ = [
    "BrowseUseCase",
    "PageExtractor",
    "StreamResolverUseCase",
    "WatchPage",
    "extract_channel",
    "extract_player_ref",
    "extract_playlist",
    "extract_playlist_page",
    "extract_video",
]
