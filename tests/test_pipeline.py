import asyncio
import io
import threading
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from ascii_art import AsciiConverter
from config import Config
from errors import DecodeError, NetworkError, NotFoundError
from events import FrameReady, RenderFailed
from models import ArtworkDetail, RenderJob
from pipeline import ArtworkPipeline
from services import ImageFetcher


def jpeg_bytes(size=(40, 20), color=(200, 200, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return buffer.getvalue()


class FakeCatalog:
    def __init__(self, details=None, error=None):
        self.details = details or {}
        self.error = error
        self.calls = []

    def artwork(self, artwork_id):
        self.calls.append(artwork_id)
        if self.error:
            raise self.error
        return self.details[artwork_id]


class FakeFetcher:
    def __init__(self, data=b"", error=None, gate=None):
        self.data = data
        self.error = error
        self.gate = gate
        self.urls = []
        self.stored = []
        self.discarded = []

    def fetch(self, url, cache_key=None):
        self.urls.append((url, cache_key))
        if self.gate is not None:
            self.gate.wait(timeout=2)
        if self.error:
            raise self.error
        return self.data

    def store(self, cache_key, data):
        self.stored.append(cache_key)

    def discard(self, cache_key):
        self.discarded.append(cache_key)


def detail(artwork_id=7, image_id="abc-123", alt=()):
    return ArtworkDetail(id=artwork_id, title="Waves", image_id=image_id, alt_image_ids=alt,
                         iiif_url="https://www.artic.edu/iiif/2")


@pytest.mark.asyncio
async def test_successful_job_produces_tagged_frame():
    fetcher = FakeFetcher(jpeg_bytes())
    pipeline = ArtworkPipeline(FakeCatalog({7: detail()}), fetcher, AsciiConverter())
    result = await pipeline.run(RenderJob(artwork_id=7, width=20, generation=3))

    assert isinstance(result, FrameReady)
    assert result.generation == 3
    assert result.frame.artwork_id == 7
    assert all(len(line) == 20 for line in result.frame.lines)
    # 40x20 image at width 20 with half-height glyphs
    assert len(result.frame.lines) == 5
    assert fetcher.urls == [("https://www.artic.edu/iiif/2/abc-123/full/843,/0/default.jpg", "abc-123")]


@pytest.mark.asyncio
async def test_alternate_image_is_used_when_primary_missing():
    fetcher = FakeFetcher(jpeg_bytes())
    pipeline = ArtworkPipeline(FakeCatalog({7: detail(image_id=None, alt=("alt-1",))}), fetcher, AsciiConverter())
    result = await pipeline.run(RenderJob(7, 10, 1))
    assert isinstance(result, FrameReady)
    assert fetcher.urls[0][1] == "alt-1"


@pytest.mark.asyncio
async def test_artwork_without_any_image_is_not_found():
    pipeline = ArtworkPipeline(FakeCatalog({7: detail(image_id=None)}), FakeFetcher(), AsciiConverter())
    result = await pipeline.run(RenderJob(7, 10, 4))
    assert isinstance(result, RenderFailed)
    assert isinstance(result.error, NotFoundError)
    assert result.generation == 4
    assert result.error.generation == 4


@pytest.mark.asyncio
async def test_catalog_errors_are_tagged_with_generation():
    pipeline = ArtworkPipeline(FakeCatalog(error=NotFoundError("no artwork 7")), FakeFetcher(), AsciiConverter())
    result = await pipeline.run(RenderJob(7, 10, 2))
    assert isinstance(result, RenderFailed)
    assert result.generation == 2


@pytest.mark.asyncio
async def test_network_error_while_fetching_bytes():
    fetcher = FakeFetcher(error=NetworkError("timed out"))
    pipeline = ArtworkPipeline(FakeCatalog({7: detail()}), fetcher, AsciiConverter())
    result = await pipeline.run(RenderJob(7, 10, 1))
    assert isinstance(result.error, NetworkError)


@pytest.mark.asyncio
async def test_undecodable_bytes_give_decode_error():
    pipeline = ArtworkPipeline(FakeCatalog({7: detail()}), FakeFetcher(b"<html>nope</html>"), AsciiConverter())
    result = await pipeline.run(RenderJob(7, 10, 1))
    assert isinstance(result.error, DecodeError)


@pytest.mark.asyncio
async def test_unexpected_exceptions_still_resolve_the_job():
    pipeline = ArtworkPipeline(FakeCatalog({}), FakeFetcher(), AsciiConverter())
    result = await pipeline.run(RenderJob(99, 10, 6))
    assert isinstance(result, RenderFailed)
    assert result.generation == 6


@pytest.mark.asyncio
async def test_superseded_job_is_abandoned():
    gate = threading.Event()
    fetcher = FakeFetcher(jpeg_bytes(), gate=gate)
    pipeline = ArtworkPipeline(FakeCatalog({7: detail(), 8: detail(8)}), fetcher, AsciiConverter())

    old = asyncio.ensure_future(pipeline.run(RenderJob(7, 10, 1)))
    while not fetcher.urls:
        await asyncio.sleep(0.01)
    new = asyncio.ensure_future(pipeline.run(RenderJob(8, 10, 2)))
    gate.set()

    assert await old is None
    result = await new
    assert isinstance(result, FrameReady)
    assert result.frame.artwork_id == 8


@pytest.mark.asyncio
async def test_decoded_images_are_cached_and_bad_ones_discarded():
    good = FakeFetcher(jpeg_bytes())
    await ArtworkPipeline(FakeCatalog({7: detail()}), good, AsciiConverter()).run(RenderJob(7, 10, 1))
    assert good.stored == ["abc-123"]
    assert good.discarded == []

    bad = FakeFetcher(b"<html>oops</html>")
    await ArtworkPipeline(FakeCatalog({7: detail()}), bad, AsciiConverter()).run(RenderJob(7, 10, 1))
    assert bad.stored == []
    assert bad.discarded == ["abc-123"]


@pytest.mark.asyncio
async def test_retry_after_bad_download_fetches_again(tmp_path):
    config = Config(data_dir=tmp_path, config_dir=tmp_path)
    session = MagicMock(spec=requests.Session)
    bodies = [b"<html>oops</html>", jpeg_bytes()]

    def get(url, timeout, **kwargs):
        reply = MagicMock(spec=requests.Response)
        reply.status_code = 200
        reply.content = bodies.pop(0)
        return reply

    session.get.side_effect = get
    fetcher = ImageFetcher(session, config)
    pipeline = ArtworkPipeline(FakeCatalog({7: detail()}), fetcher, AsciiConverter())

    first = await pipeline.run(RenderJob(7, 10, 1))
    assert isinstance(first.error, DecodeError)
    assert not (config.image_cache_dir / "abc-123.jpg").exists()

    second = await pipeline.run(RenderJob(7, 10, 2))
    assert isinstance(second, FrameReady)
    assert session.get.call_count == 2

    third = await pipeline.run(RenderJob(7, 10, 3))
    assert isinstance(third, FrameReady)
    assert session.get.call_count == 2
    assert list(config.image_cache_dir.iterdir()) == [config.image_cache_dir / "abc-123.jpg"]
