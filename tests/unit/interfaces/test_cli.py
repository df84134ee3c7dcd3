"""Tests for the tubextract command line."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from pathlib import Path

import pytest
import respx
from builders import (
    PLAYER_JS,
    PLAYER_VERSION,
    PLAYLIST_ID,
    VIDEO_ID,
    build_initial_data_html,
    continuation_item,
    make_continuation_body,
    make_playlist_data,
    playlist_item,
    video_id,
)

from tubextract.domain.entities import UNKNOWN, Availability, Playlist
from tubextract.interfaces.cli.cli import start, to_jsonable


def _run(capsys: pytest.CaptureFixture[str], *argv: str) -> tuple[int, object, str]:
    code = start(["--log-level", "ERROR", *argv])
    captured = capsys.readouterr()
    payload = json.loads(captured.out) if code == 0 else None
    return code, payload, captured.err


class TestToJsonable:
    def test_unknown_is_null(self) -> None:
        assert to_jsonable(UNKNOWN) is None

    def test_enums_and_dates(self) -> None:
        assert to_jsonable(Availability.PRIVATE) == "private"
        assert to_jsonable(date(2009, 10, 25)) == "2009-10-25"
        assert (
            to_jsonable(datetime(2023, 11, 14, tzinfo=timezone.utc))
            == "2023-11-14T00:00:00+00:00"
        )

    def test_dataclass_skips_walker_factory(self) -> None:
        playlist = Playlist(id=PLAYLIST_ID, title="t", walker_factory=lambda: None)
        data = to_jsonable(playlist)
        assert "walker_factory" not in data
        assert data["id"] == PLAYLIST_ID
        assert data["description"] is None
        assert data["thumbnails"] == []

    def test_nested_containers(self) -> None:
        assert to_jsonable({"a": (UNKNOWN, 1)}) == {"a": [None, 1]}


class TestVideoCommand:
    def test_from_file(
        self, tmp_path: Path, watch_html: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        page = tmp_path / "watch.html"
        page.write_text(watch_html, encoding="utf-8")

        code, payload, _ = _run(capsys, "video", str(page))

        assert code == 0
        assert payload["id"] == VIDEO_ID
        assert payload["likes"] == 17654321
        assert [s["itag"] for s in payload["streams"]] == [18, 137, 140]
        assert payload["streams"][1]["url"] is None
        assert payload["streams"][1]["cipher"]["signature_param"] == "sig"

    @respx.mock
    def test_from_url(self, watch_html: str, capsys: pytest.CaptureFixture[str]) -> None:
        respx.get("https://www.youtube.com/watch").respond(200, text=watch_html)

        code, payload, _ = _run(
            capsys, "video", f"https://www.youtube.com/watch?v={VIDEO_ID}"
        )

        assert code == 0
        assert payload["video"]["id"] == VIDEO_ID
        assert payload["player"]["version"] == PLAYER_VERSION

    def test_broken_page_exits_nonzero(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        page = tmp_path / "empty.html"
        page.write_text("<html></html>", encoding="utf-8")

        code, _, err = _run(capsys, "video", str(page))

        assert code == 1
        assert "error:" in err

    @respx.mock
    def test_transport_error_exits_nonzero(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        respx.get("https://www.youtube.com/watch").respond(503)
        code, _, err = _run(capsys, "video", f"https://www.youtube.com/watch?v={VIDEO_ID}")
        assert code == 1
        assert "HTTP 503" in err


class TestPlaylistCommand:
    def test_from_file_with_limit(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        data = make_playlist_data(
            [playlist_item(video_id(n)) for n in range(1, 4)] + [continuation_item("tok-1")]
        )
        page = tmp_path / "playlist.html"
        page.write_text(build_initial_data_html(data), encoding="utf-8")

        code, payload, _ = _run(capsys, "playlist", str(page), "--limit", "2")

        assert code == 0
        assert payload["playlist"]["title"] == "Best of the 80s"
        assert [i["id"] for i in payload["items"]] == [video_id(1), video_id(2)]
        assert payload["next_token"] == "tok-1"

    def test_continuation_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        body = tmp_path / "continuation.json"
        body.write_text(make_continuation_body([playlist_item(video_id(9))]), encoding="utf-8")

        code, payload, _ = _run(capsys, "playlist", str(body))

        assert code == 0
        assert payload["playlist"] is None
        assert [i["id"] for i in payload["items"]] == [video_id(9)]
        assert payload["next_token"] is None

    @respx.mock
    def test_from_url_walks_pages(self, capsys: pytest.CaptureFixture[str]) -> None:
        first = make_playlist_data([playlist_item(video_id(1)), continuation_item("tok-1")])
        respx.get("https://www.youtube.com/playlist").respond(
            200, text=build_initial_data_html(first)
        )
        respx.get("https://www.youtube.com/browse_ajax").respond(
            200, text=make_continuation_body([playlist_item(video_id(2))])
        )

        code, payload, _ = _run(
            capsys, "playlist", f"https://www.youtube.com/playlist?list={PLAYLIST_ID}"
        )

        assert code == 0
        assert [i["id"] for i in payload["items"]] == [video_id(1), video_id(2)]
        assert payload["pages"] == 2

    def test_url_without_list_param(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            start(["playlist", "https://www.youtube.com/playlist"])


class TestPlayerCommand:
    def test_describes_operations(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        script = tmp_path / "base.js"
        script.write_text(PLAYER_JS, encoding="utf-8")

        code, payload, _ = _run(capsys, "player", str(script), "--version", PLAYER_VERSION)

        assert code == 0
        assert payload == {
            "player_version": PLAYER_VERSION,
            "signature": ["Reverse", "Splice(2)"],
            "n_transform": ["Reverse", "Splice(1)"],
        }

    def test_unrecognised_player(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        script = tmp_path / "base.js"
        script.write_text("var nothing=1;", encoding="utf-8")

        code, _, err = _run(capsys, "player", str(script), "--version", PLAYER_VERSION)

        assert code == 1
        assert "not found" in err

    def test_version_required(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            start(["player", "base.js"])
