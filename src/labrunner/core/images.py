"""Localise remote images so LaTeX output can embed them."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from importlib import metadata as importlib_metadata
import logging
from pathlib import Path
from typing import Any, TypeVar
from urllib.parse import urlparse

import requests

from .diagnostics import DiagnosticEmitter, ensure_emitter
from .documents import DirectImage, IndirectImage, ParagraphNode, Paragraphs, SpanNode
from .exceptions import AssetFetchError
from .files import ensure_directory
from .walker import map_paragraphs


logger = logging.getLogger(__name__)

SAVED_IMAGES_FOLDER = "savedimages"

T = TypeVar("T")
Saver = Callable[[str], str]


def key_variants(key: str) -> list[str]:
    """Return the spellings under which a reference key may have been stored."""
    candidates = [
        key,
        key.replace("\r\n", ""),
        key.replace("\r\n", " "),
        key.replace("\n", ""),
        key.replace("\n", " "),
        " ".join(key.split()),
    ]
    variants: list[str] = []
    for candidate in candidates:
        if candidate not in variants:
            variants.append(candidate)
    return variants


def lookup_key(table: Mapping[str, T], key: str) -> T | None:
    """Look ``key`` up, tolerating line breaks and collapsed spaces."""
    for candidate in key_variants(key):
        if candidate in table:
            return table[candidate]
    return None


def localize_span(
    span: SpanNode,
    saver: Saver,
    links: Mapping[str, tuple[str, str | None]],
) -> SpanNode:
    """Turn an image span into a direct image pointing at a saved file."""
    match span:
        case DirectImage(body, url, title):
            return DirectImage(body, saver(url), title)
        case IndirectImage(body, _, key):
            resolved = lookup_key(links, key)
            if resolved is None:
                return span
            url, title = resolved
            return DirectImage(body, saver(url), title)
        case _:
            return span


def localize_images(
    paragraphs: Iterable[ParagraphNode],
    saver: Saver,
    links: Mapping[str, tuple[str, str | None]],
) -> Paragraphs:
    """Replace every image of the tree with a locally materialised copy."""
    return map_paragraphs(lambda span: localize_span(span, saver, links), paragraphs)


def _default_user_agent() -> str:
    try:
        version = importlib_metadata.version("labrunner")
    except importlib_metadata.PackageNotFoundError:
        version = "unknown"
    return f"labrunner/{version}"


def _suffix_from_url(url: str) -> str:
    parsed = urlparse(url)
    return Path(parsed.path or "").suffix


class ImageSaver:
    """Download remote images to `savedimages/savedN<ext>` under the output folder.

    The counter is scoped to one instance; create a new saver for every
    rendered document. A URL used several times is downloaded once.
    """

    def __init__(
        self,
        output: Path,
        *,
        session: Any | None = None,
        timeout: float = 30.0,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.output = Path(output)
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.counter = 0
        self.saved: dict[str, str] = {}
        self._emitter = ensure_emitter(emitter)

    def __call__(self, url: str) -> str:
        if not url.startswith("http"):
            return url
        if url in self.saved:
            return self.saved[url]

        self.counter += 1
        relative = f"./{SAVED_IMAGES_FOLDER}/saved{self.counter}{_suffix_from_url(url)}"
        target = self.output / relative
        ensure_directory(target.parent)
        self._emitter.event("asset_fetch", {"url": url, "target": relative})
        try:
            response = self.session.get(
                url, timeout=self.timeout, headers={"User-Agent": _default_user_agent()}
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise AssetFetchError(f"Failed to fetch image '{url}': {exc}") from exc
        try:
            target.write_bytes(response.content)
        except OSError as exc:
            raise AssetFetchError(f"Failed to save image '{url}' to '{target}': {exc}") from exc
        logger.debug("Saved %s to %s", url, target)
        self.saved[url] = relative
        return relative


__all__ = [
    "SAVED_IMAGES_FOLDER",
    "ImageSaver",
    "key_variants",
    "localize_images",
    "localize_span",
    "lookup_key",
]
