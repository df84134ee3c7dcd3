"""Page-data extraction: blob location, normalization, entity building."""

from __future__ import annotations

from .blob_locator import BlobKind, RawBlob, locate, locate_json_body, scan_balanced
from .entity_builder import build_thumbnails, build_video
from .field_table import FieldTable, default_field_table, load_field_table
from .listing_builder import build_channel, build_playlist, build_playlist_page
from .normalizer import FieldView, NormalizedTree, normalize
from .stream_builder import build_stream_list, parse_signature_cipher

__all__ = [
    "BlobKind",
    "FieldTable",
    "FieldView",
    "NormalizedTree",
    "RawBlob",
    "build_channel",
    "build_playlist",
    "build_playlist_page",
    "build_stream_list",
    "build_thumbnails",
    "build_video",
    "default_field_table",
    "load_field_table",
    "locate",
    "locate_json_body",
    "normalize",
    "parse_signature_cipher",
    "scan_balanced",
]
