"""In-memory stand-in for the parts of a boto3 S3 client the pipeline uses."""

from __future__ import annotations

import gzip
import threading
import time

from botocore.exceptions import ClientError


def client_error(code: str, operation: str) -> ClientError:
    """Build a ClientError the way botocore reports service errors."""
    return ClientError({"Error": {"Code": code, "Message": f"simulated {code}"}}, operation)


def gzipped(text: str) -> bytes:
    """Compress `text` the way the uploaded .json.gz objects are."""
    return gzip.compress(text.encode("utf-8"))


class _Paginator:
    def __init__(self, store: "FakeS3"):
        self.store = store

    def paginate(self, Bucket, Prefix="", Delimiter=None):  # pylint: disable=invalid-name
        """Lazy page generator, like botocore's PageIterator."""
        self.store.list_calls.append(Prefix)
        return self.store.iter_pages(Bucket, Prefix, Delimiter)


class FakeS3:  # pylint: disable=too-many-instance-attributes
    """
    Delimited, paginated listing over a dict of keys, plus streaming downloads.

    `failing_prefixes` maps a prefix to the number of pages served before the
    listing raises. `failing_keys` makes `download_fileobj` fail part way.
    `download_delay` keeps downloads in flight long enough to observe overlap.
    """

    def __init__(self, page_size: int = 1000, download_delay: float = 0.0):
        self.objects: dict[str, bytes] = {}
        self.page_size = page_size
        self.download_delay = download_delay
        self.failing_prefixes: dict[str, int] = {}
        self.failing_keys: set[str] = set()
        self.list_calls: list[str] = []
        self.downloaded: list[str] = []
        self.uploads: list[dict] = []
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def put(self, key: str, body: bytes = b"") -> None:
        self.objects[key] = body

    def get_paginator(self, operation_name: str) -> _Paginator:
        assert operation_name == "list_objects_v2"
        return _Paginator(self)

    def _entries(self, prefix: str, delimiter):
        entries: dict[str, str] = {}
        for key in self.objects:
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix) :]
            if delimiter and delimiter in rest:
                common = prefix + rest[: rest.index(delimiter) + len(delimiter)]
                entries[common] = "prefix"
            else:
                entries[key] = "object"
        return sorted(entries.items())

    def iter_pages(self, bucket: str, prefix: str, delimiter):
        """Yield S3-shaped pages; keys with no entries are omitted like the real API."""
        del bucket
        entries = self._entries(prefix, delimiter)
        fail_after = self.failing_prefixes.get(prefix)
        chunks = [entries[i : i + self.page_size] for i in range(0, len(entries), self.page_size)]
        for index, chunk in enumerate(chunks or [[]]):
            if fail_after is not None and index >= fail_after:
                raise client_error("AccessDenied", "ListObjectsV2")
            page: dict = {"KeyCount": len(chunk)}
            contents = [{"Key": name, "Size": len(self.objects[name])} for name, kind in chunk if kind == "object"]
            prefixes = [{"Prefix": name} for name, kind in chunk if kind == "prefix"]
            if contents:
                page["Contents"] = contents
            if prefixes:
                page["CommonPrefixes"] = prefixes
            yield page

    def download_fileobj(self, Bucket, Key, Fileobj, Config=None):  # pylint: disable=invalid-name
        """Write the object's bytes to Fileobj, tracking concurrent callers."""
        del Bucket, Config
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.download_delay:
                time.sleep(self.download_delay)
            if Key not in self.objects:
                raise client_error("NoSuchKey", "GetObject")
            body = self.objects[Key]
            if Key in self.failing_keys:
                Fileobj.write(body[: len(body) // 2])
                raise client_error("SlowDown", "GetObject")
            Fileobj.write(body)
            with self._lock:
                self.downloaded.append(Key)
        finally:
            with self._lock:
                self.in_flight -= 1

    def upload_file(self, Filename, Bucket, Key):  # pylint: disable=invalid-name
        self.uploads.append({"Filename": Filename, "Bucket": Bucket, "Key": Key})
