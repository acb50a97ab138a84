from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from nest_worker.services.storage_client import StorageClient, _normalize_emulator_endpoint, parse_storage_path


def test_parse_gs_uri() -> None:
  location = parse_storage_path("gs://recordings/meetings/m-1/audio.webm", default_bucket="fallback")
  assert (location.bucket, location.object_name) == ("recordings", "meetings/m-1/audio.webm")
  assert location.uri == "gs://recordings/meetings/m-1/audio.webm"


def test_parse_bare_object_uses_default_bucket() -> None:
  location = parse_storage_path("/meetings/m-1/audio.webm", default_bucket="nest-meeting-uploads")
  assert location.uri == "gs://nest-meeting-uploads/meetings/m-1/audio.webm"


@pytest.mark.parametrize("path", ["gs://bucket-only", "gs:///object", "   "])
def test_parse_rejects_incomplete_paths(path: str) -> None:
  with pytest.raises(ValueError):
    parse_storage_path(path, default_bucket="nest-meeting-uploads")


def test_normalize_emulator_endpoint() -> None:
  assert _normalize_emulator_endpoint("http://localhost:4443/storage/v1/") == "http://localhost:4443"
  assert _normalize_emulator_endpoint("localhost:4443/") == "localhost:4443"


@pytest.mark.anyio
async def test_download_reads_blob_bytes(make_settings) -> None:
  with patch("nest_worker.services.storage_client.storage.Client") as client_cls:
    blob = MagicMock()
    blob.download_as_bytes.return_value = b"audio-bytes"
    client_cls.return_value.bucket.return_value.blob.return_value = blob
    client = StorageClient(make_settings())

    data = await client.download("meetings/m-1/audio.webm")

  assert data == b"audio-bytes"
  client_cls.return_value.bucket.assert_called_once_with("nest-meeting-uploads")
  client_cls.return_value.bucket.return_value.blob.assert_called_once_with("meetings/m-1/audio.webm")
