"""Shared test fixtures for the tubextract test suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest
from builders import (
    PLAYER_JS,
    build_watch_html,
    make_player_response,
    make_ytcfg,
)

from tubextract.infrastructure.extraction import (
    BlobKind,
    NormalizedTree,
    default_field_table,
    locate,
    normalize,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def player_response() -> dict[str, Any]:
    """Player response with one muxed, one ciphered video-only, one audio stream."""
    return make_player_response()


@pytest.fixture()
def watch_html(player_response: dict[str, Any]) -> str:
    """Watch page with player response, like count and ytcfg."""
    initial_data = {
        "responseContext": {},
        "contents": {
            "twoColumnWatchNextResults": {
                "results": {
                    "results": {
                        "contents": [
                            {
                                "videoPrimaryInfoRenderer": {
                                    "videoActions": {
                                        "menuRenderer": {
                                            "topLevelButtons": [
                                                {
                                                    "segmentedLikeDislikeButtonRenderer": {
                                                        "likeButton": {
                                                            "toggleButtonRenderer": {
                                                                "defaultText": {
                                                                    "accessibility": {
                                                                        "accessibilityData": {
                                                                            "label": "17,654,321 likes"
                                                                        }
                                                                    }
                                                                }
                                                            }
                                                        }
                                                    }
                                                }
                                            ]
                                        }
                                    }
                                }
                            }
                        ]
                    }
                }
            }
        },
    }
    return build_watch_html(player_response, initial_data, make_ytcfg())


@pytest.fixture()
def player_js() -> str:
    return PLAYER_JS


@pytest.fixture()
def table():
    """Packaged field path table."""
    return default_field_table()


@pytest.fixture()
def tree_of() -> Callable[[str, BlobKind], NormalizedTree]:
    """Locate and normalize one blob kind of a document."""

    def _tree(document: str, kind: BlobKind) -> NormalizedTree:
        return normalize(locate(document, kind))

    return _tree
