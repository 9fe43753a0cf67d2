"""
Image locator classification.

A listing may carry locators written by either storage backend (for example
after a migration from local disk to blob storage), so deletion is routed by
the locator's own shape rather than by the currently configured backend:

* local:  ``/uploads/<file name>``
* remote: ``https://<host>/.../<container>/<folder>/<blob path>``
"""
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote, urlsplit


class ImageLocatorKind(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LocatorLayout:
    """Where each backend places its objects, taken from configuration."""

    local_prefix: str = "/uploads"
    remote_container: str = "listings"
    remote_folder: str = "estate-listings"

    @property
    def remote_marker(self) -> str:
        return f"/{self.remote_container}/{self.remote_folder}/"


@dataclass(frozen=True)
class ClassifiedLocator:
    locator: str
    kind: ImageLocatorKind
    # Backend object key: a file name for LOCAL, a blob name for REMOTE.
    key: str | None = None


def _unknown(locator: str) -> ClassifiedLocator:
    return ClassifiedLocator(locator=locator, kind=ImageLocatorKind.UNKNOWN)


def _is_safe_name(name: str) -> bool:
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


def classify_locator(locator: str, layout: LocatorLayout) -> ClassifiedLocator:
    if not locator:
        return _unknown(locator)

    parts = urlsplit(locator)

    if parts.scheme in ("http", "https") and parts.netloc:
        path = unquote(parts.path)
        marker = layout.remote_marker
        index = path.find(marker)
        if index == -1:
            return _unknown(locator)
        blob_tail = path[index + len(marker):]
        if not blob_tail or ".." in blob_tail.split("/"):
            return _unknown(locator)
        return ClassifiedLocator(
            locator=locator,
            kind=ImageLocatorKind.REMOTE,
            key=f"{layout.remote_folder}/{blob_tail}",
        )

    if parts.scheme or parts.netloc:
        return _unknown(locator)

    prefix = layout.local_prefix.rstrip("/") + "/"
    if locator.startswith(prefix):
        name = locator[len(prefix):]
        if _is_safe_name(name):
            return ClassifiedLocator(locator=locator, kind=ImageLocatorKind.LOCAL, key=name)

    return _unknown(locator)
