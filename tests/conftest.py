from __future__ import annotations

import threading
from types import SimpleNamespace
from typing import Any

import pytest
from googleapiclient.errors import HttpError

from media_describer.core.models import Asset


def make_http_error(status: int, message: str = "boom") -> HttpError:
    resp = SimpleNamespace(status=status, reason=message)
    content = ('{"error": {"message": "%s"}}' % message).encode("utf-8")
    return HttpError(resp, content)


class FakeListRequest:
    def __init__(self, result: Any = None, error: Exception | None = None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.result


class FakeMediaRequest:
    def __init__(self, content: bytes = b"", error: Exception | None = None):
        self.content = content
        self.error = error


class FakeFiles:
    """Stands in for service.files(); pages are served in order."""

    def __init__(self, pages=None, contents=None, list_error=None):
        self.pages = list(pages or [])
        self.contents = dict(contents or {})
        self.list_error = list_error
        self.list_calls: list[dict] = []
        self.media_calls: list[str] = []
        self._lock = threading.Lock()

    def list(self, **kwargs):
        self.list_calls.append(kwargs)
        if self.list_error is not None:
            return FakeListRequest(error=self.list_error)
        index = len(self.list_calls) - 1
        return FakeListRequest(result=self.pages[index])

    def get_media(self, fileId: str):
        with self._lock:
            self.media_calls.append(fileId)
        content = self.contents.get(fileId)
        if isinstance(content, Exception):
            return FakeMediaRequest(error=content)
        if content is None:
            return FakeMediaRequest(error=make_http_error(404, "File not found"))
        return FakeMediaRequest(content=content)


class FakeDriveService:
    def __init__(self, files: FakeFiles):
        self._files = files

    def files(self):
        return self._files


class FakeDownloader:
    """Replaces MediaIoBaseDownload: writes the whole body in one chunk."""

    def __init__(self, buffer, request):
        self.buffer = buffer
        self.request = request

    def next_chunk(self):
        if self.request.error is not None:
            raise self.request.error
        self.buffer.write(self.request.content)
        return None, True


@pytest.fixture
def fake_downloads(monkeypatch: pytest.MonkeyPatch):
    from media_describer.core import drive_client as drive_module

    monkeypatch.setattr(drive_module, "MediaIoBaseDownload", FakeDownloader)


class FakeBlob:
    def __init__(self, bucket: "FakeBucket", name: str):
        self.bucket = bucket
        self.name = name

    def upload_from_string(self, data, content_type=None):
        if self.bucket.upload_error is not None:
            raise self.bucket.upload_error
        with self.bucket.lock:
            self.bucket.objects[self.name] = data
            self.bucket.uploads.append((self.name, data, content_type))


class FakeBucket:
    def __init__(self, name: str, objects=None, probe_error=None, upload_error=None):
        self.name = name
        self.objects = dict(objects or {})
        self.probe_error = probe_error
        self.upload_error = upload_error
        self.uploads: list[tuple] = []
        self.probes: list[str] = []
        self.lock = threading.Lock()

    def get_blob(self, name: str):
        self.probes.append(name)
        if self.probe_error is not None:
            raise self.probe_error
        if name in self.objects:
            return FakeBlob(self, name)
        return None

    def blob(self, name: str):
        return FakeBlob(self, name)


class FakeStorageClient:
    def __init__(self, bucket: FakeBucket):
        self._bucket = bucket

    def bucket(self, name: str):
        assert name == self._bucket.name
        return self._bucket


@pytest.fixture
def assets() -> list[Asset]:
    return [
        Asset(id="id-1", name="beach.jpg", mimeType="image/jpeg", size="11"),
        Asset(id="id-2", name="forest.png", mimeType="image/png"),
        Asset(id="id-3", name="city.jpg", mimeType="image/jpeg"),
    ]
