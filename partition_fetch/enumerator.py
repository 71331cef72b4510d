"""Phase 1: Walking the prefix tree of a bucket"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from botocore.exceptions import BotoCoreError, ClientError

DEFAULT_DELIMITER = "/"


@dataclass(frozen=True)
class PrefixFailure:
    """A prefix whose listing failed part way; keys beneath it may be missing."""

    prefix: str
    error: str


@dataclass
class EnumerationResult:
    """Keys found by a walk, plus the prefixes that could not be fully listed."""

    keys: list[str] = field(default_factory=list)
    failed_prefixes: list[PrefixFailure] = field(default_factory=list)
    prefixes_listed: int = 0

    @property
    def complete(self) -> bool:
        """True when every prefix in the tree was listed to the last page."""
        return not self.failed_prefixes


class PrefixEnumerator:  # pylint: disable=too-few-public-methods
    """Collects every key under a prefix whose name ends with a suffix."""

    def __init__(self, s3, bucket: str, suffix: str = ".json.gz", delimiter: str = DEFAULT_DELIMITER):
        self.s3 = s3
        self.bucket = bucket
        self.suffix = suffix
        self.delimiter = delimiter
        self.interrupted = False

    def collect(self, prefix: str) -> EnumerationResult:
        """
        Walk the tree rooted at `prefix` depth-first and return matching keys.

        Sub-prefixes go on an explicit frontier stack instead of the call stack.
        A listing error abandons the rest of that prefix only; it is logged and
        recorded in `failed_prefixes`. Prefixes still unvisited when
        `interrupted` is set are recorded there too.
        """
        result = EnumerationResult()
        frontier = [prefix]
        while frontier:
            if self.interrupted:
                logging.warning("Enumeration interrupted with %d prefix(es) unvisited", len(frontier))
                result.failed_prefixes.extend(
                    PrefixFailure(prefix=pending, error="interrupted") for pending in reversed(frontier)
                )
                return result
            current = frontier.pop()
            children = self._list_prefix(current, result)
            # Reversed so the first listed child is visited next
            frontier.extend(reversed(children))
        return result

    def _list_prefix(self, prefix: str, result: EnumerationResult) -> list[str]:
        """List one prefix across all pages; return the sub-prefixes seen."""
        children: list[str] = []
        result.prefixes_listed += 1
        paginator = self.s3.get_paginator("list_objects_v2")
        pages = paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter=self.delimiter)
        try:
            for page in pages:
                for common in page.get("CommonPrefixes", []):
                    children.append(common["Prefix"])
                for obj in page.get("Contents", []):
                    self._record_object(obj["Key"], result)
        except (ClientError, BotoCoreError) as exc:
            logging.error("Error listing s3://%s/%s: %s", self.bucket, prefix, exc)
            result.failed_prefixes.append(PrefixFailure(prefix=prefix, error=str(exc)))
        return children

    def _record_object(self, key: str, result: EnumerationResult) -> None:
        if key.endswith(self.delimiter) or not key.endswith(self.suffix):
            return
        result.keys.append(key)
        logging.debug("Found file: %s", key)


def collect_keys(
    s3,
    bucket: str,
    prefix: str,
    suffix: str = ".json.gz",
    delimiter: str = DEFAULT_DELIMITER,
) -> EnumerationResult:
    """Convenience wrapper around PrefixEnumerator.collect."""
    return PrefixEnumerator(s3, bucket, suffix=suffix, delimiter=delimiter).collect(prefix)
