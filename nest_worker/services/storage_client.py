"""Object storage access for uploaded meeting recordings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse, urlunparse

from google.auth.credentials import AnonymousCredentials
from google.cloud import storage
from starlette.concurrency import run_in_threadpool

from nest_worker.config import Settings


@dataclass(frozen=True)
class StorageLocation:
  """Bucket and object name resolved from a stored path."""

  bucket: str
  object_name: str

  @property
  def uri(self) -> str:
    return f"gs://{self.bucket}/{self.object_name}"


def parse_storage_path(path: str, *, default_bucket: str) -> StorageLocation:
  """Accept ``gs://bucket/object`` or a bare object name in the default bucket."""
  raw = path.strip()
  if raw.startswith("gs://"):
    bucket, _, object_name = raw.removeprefix("gs://").partition("/")
    if not bucket or not object_name:
      raise ValueError(f"Invalid storage path: {path}")
    return StorageLocation(bucket=bucket, object_name=object_name)
  object_name = raw.lstrip("/")
  if not object_name:
    raise ValueError("Storage path is empty.")
  return StorageLocation(bucket=default_bucket, object_name=object_name)


class StorageClient:
  """Thin wrapper over GCS and emulator access for recording downloads."""

  def __init__(self, settings: Settings) -> None:
    self._bucket_name = settings.meeting_bucket
    self._storage_host = settings.gcs_storage_host
    # The SDK only honours the emulator when this variable is set.
    if self._storage_host:
      emulator_endpoint = _normalize_emulator_endpoint(self._storage_host)
      os.environ["STORAGE_EMULATOR_HOST"] = emulator_endpoint
      self._client = storage.Client(project=settings.gcp_project_id or "local-dev", credentials=AnonymousCredentials(), client_options={"api_endpoint": emulator_endpoint})
    else:
      self._client = storage.Client(project=settings.gcp_project_id)

  @property
  def bucket_name(self) -> str:
    return self._bucket_name

  async def download(self, path: str) -> bytes:
    """Download the object referenced by ``path`` and return its bytes."""
    location = parse_storage_path(path, default_bucket=self._bucket_name)
    blob = self._client.bucket(location.bucket).blob(location.object_name)
    return await run_in_threadpool(blob.download_as_bytes)


def build_storage_client(settings: Settings) -> StorageClient:
  return StorageClient(settings)


def _normalize_emulator_endpoint(raw_endpoint: str) -> str:
  """Reduce the emulator endpoint to scheme+host+port."""
  parsed = urlparse(raw_endpoint)
  if not parsed.scheme or not parsed.netloc:
    return raw_endpoint.rstrip("/")
  return urlunparse((parsed.scheme, parsed.netloc, "", "", "", "")).rstrip("/")
