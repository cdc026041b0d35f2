from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import requests

from labrunner.core.documents import (
    DirectImage,
    Heading,
    IndirectImage,
    Literal,
    Paragraph,
    QuotedBlock,
    Strong,
)
from labrunner.core.exceptions import AssetFetchError
from labrunner.core.images import ImageSaver, key_variants, localize_images, lookup_key


class FakeResponse:
    def __init__(self, content: bytes, status: int = 200) -> None:
        self.content = content
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        return FakeResponse(f"bytes of {url}".encode(), self.status)


def test_key_variants_cover_line_breaks() -> None:
    variants = key_variants("first\r\nsecond")
    assert "first\r\nsecond" in variants
    assert "firstsecond" in variants
    assert "first second" in variants
    assert len(variants) == len(set(variants))


def test_lookup_key_tolerates_newlines() -> None:
    table = {"multi line key": "found"}
    assert lookup_key(table, "multi\nline key") == "found"
    assert lookup_key(table, "multi line key") == "found"
    assert lookup_key(table, "absent") is None


def test_saver_downloads_remote_images(tmp_path: Path) -> None:
    session = FakeSession()
    saver = ImageSaver(tmp_path, session=session)

    first = saver("http://example.com/plot.png")
    second = saver("https://example.com/photo.jpeg?size=large")

    assert first == "./savedimages/saved1.png"
    assert second == "./savedimages/saved2.jpeg"
    assert (tmp_path / "savedimages" / "saved1.png").read_bytes() == b"bytes of http://example.com/plot.png"
    assert session.calls[0]["timeout"] == saver.timeout
    assert session.calls[0]["headers"]["User-Agent"].startswith("labrunner/")
    assert saver.saved == {
        "http://example.com/plot.png": first,
        "https://example.com/photo.jpeg?size=large": second,
    }


def test_saver_keeps_local_paths(tmp_path: Path) -> None:
    session = FakeSession()
    saver = ImageSaver(tmp_path, session=session)
    assert saver("images/local.png") == "images/local.png"
    assert session.calls == []
    assert saver.counter == 0


def test_saver_without_extension(tmp_path: Path) -> None:
    saver = ImageSaver(tmp_path, session=FakeSession())
    assert saver("http://example.com/chart") == "./savedimages/saved1"


def test_saver_raises_on_http_error(tmp_path: Path) -> None:
    saver = ImageSaver(tmp_path, session=FakeSession(status=404))
    with pytest.raises(AssetFetchError, match="example.com/missing.png"):
        saver("http://example.com/missing.png")


def test_localize_images_resolves_direct_and_indirect(tmp_path: Path) -> None:
    saver = ImageSaver(tmp_path, session=FakeSession())
    links = {"my chart": ("http://example.com/chart.png", "Chart")}
    paragraphs = (
        Heading(1, (Literal("Title"),)),
        Paragraph((DirectImage("logo", "http://example.com/logo.gif"),)),
        QuotedBlock(
            (Paragraph((Strong((IndirectImage("chart", "![chart][my\nchart]", "my\nchart"),)),)),)
        ),
    )

    result = localize_images(paragraphs, saver, links)

    assert result[0] == paragraphs[0]
    assert result[1] == Paragraph((DirectImage("logo", "./savedimages/saved1.gif"),))
    assert result[2] == QuotedBlock(
        (Paragraph((Strong((DirectImage("chart", "./savedimages/saved2.png", "Chart"),)),)),)
    )


def test_localize_images_leaves_unknown_references(tmp_path: Path) -> None:
    saver = ImageSaver(tmp_path, session=FakeSession())
    image = IndirectImage("x", "![x][nope]", "nope")
    result = localize_images((Paragraph((image,)),), saver, {})
    assert result == (Paragraph((image,)),)


def test_saver_reuses_downloaded_urls(tmp_path: Path) -> None:
    session = FakeSession()
    saver = ImageSaver(tmp_path, session=session)

    first = saver("http://example.com/plot.png")
    again = saver("http://example.com/plot.png")
    other = saver("http://example.com/other.png")

    assert again == first == "./savedimages/saved1.png"
    assert other == "./savedimages/saved2.png"
    assert len(session.calls) == 2
