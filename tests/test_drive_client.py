from __future__ import annotations

import threading

import pytest

from conftest import FakeDriveService, FakeFiles, make_http_error
from media_describer.core.drive_client import GoogleDriveClient, build_list_query
from media_describer.errors import ConfigurationError, ListingError, TransferError


def _client(files: FakeFiles) -> GoogleDriveClient:
    return GoogleDriveClient(service_factory=lambda: FakeDriveService(files))


def test_build_list_query_ors_mime_types_within_folder():
    query = build_list_query("folder-1", ["image/jpeg", "image/png"])

    assert query == (
        "'folder-1' in parents and "
        "(mimeType = 'image/jpeg' or mimeType = 'image/png') and trashed = false"
    )


def test_build_list_query_escapes_quotes():
    assert build_list_query("it's", ["image/png"]).startswith("'it\\'s' in parents")


def test_list_assets_returns_only_allowed_types():
    files = FakeFiles(pages=[{
        "files": [
            {"id": "a", "name": "a.jpg", "mimeType": "image/jpeg", "size": "10"},
            {"id": "b", "name": "b.gif", "mimeType": "image/gif"},
            {"id": "c", "name": "c.png", "mimeType": "image/png"},
        ]
    }])

    assets = _client(files).list_assets("folder-1", ["image/jpeg", "image/png"])

    assert [a.id for a in assets] == ["a", "c"]
    assert assets[0].size == 10
    assert assets[1].mime_type == "image/png"


def test_list_assets_skips_files_with_unusable_metadata(caplog: pytest.LogCaptureFixture):
    files = FakeFiles(pages=[{
        "files": [
            {"id": "a", "name": "", "mimeType": "image/jpeg"},
            {"id": "b", "name": "b.jpg", "mimeType": "image/jpeg", "size": "not-a-number"},
            {"id": "c", "name": "c.jpg", "mimeType": "image/jpeg"},
        ]
    }])

    with caplog.at_level("WARNING"):
        assets = _client(files).list_assets("folder-1", ["image/jpeg"])

    assert [a.id for a in assets] == ["c"]
    assert "Skipping file with unusable metadata a" in caplog.text


def test_list_assets_follows_page_tokens():
    files = FakeFiles(pages=[
        {"files": [{"id": "a", "name": "a.jpg", "mimeType": "image/jpeg"}], "nextPageToken": "p2"},
        {"files": [{"id": "b", "name": "b.jpg", "mimeType": "image/jpeg"}]},
    ])

    assets = _client(files).list_assets("folder-1", ["image/jpeg"], page_size=1)

    assert [a.id for a in assets] == ["a", "b"]
    assert [call["pageToken"] for call in files.list_calls] == [None, "p2"]
    assert all(call["pageSize"] == 1 for call in files.list_calls)


def test_list_assets_raises_listing_error_on_api_failure():
    files = FakeFiles(list_error=make_http_error(403, "Forbidden"))

    with pytest.raises(ListingError, match="error occurred while listing files"):
        _client(files).list_assets("folder-1", ["image/jpeg"])


def test_list_assets_requires_mime_types():
    with pytest.raises(ConfigurationError):
        _client(FakeFiles(pages=[{"files": []}])).list_assets("folder-1", [])


def test_download_bytes_returns_content(fake_downloads):
    files = FakeFiles(contents={"a": b"jpeg-bytes"})

    assert _client(files).download_bytes("a") == b"jpeg-bytes"
    assert files.media_calls == ["a"]


def test_download_bytes_wraps_http_status(fake_downloads):
    files = FakeFiles(contents={"a": make_http_error(500, "Backend Error")})

    with pytest.raises(TransferError, match="HTTP status code 500"):
        _client(files).download_bytes("a")


def test_service_is_built_once_per_thread():
    built = []

    def factory():
        service = FakeDriveService(FakeFiles())
        built.append(service)
        return service

    client = GoogleDriveClient(service_factory=factory)
    assert client.service is client.service

    seen = []
    worker = threading.Thread(target=lambda: seen.append(client.service))
    worker.start()
    worker.join()

    assert len(built) == 2
    assert seen[0] is not built[0]


def test_client_requires_credentials_or_factory():
    with pytest.raises(ValueError):
        GoogleDriveClient()
