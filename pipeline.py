# pipeline.py
import asyncio
import logging
from typing import Callable, Optional, TypeVar, Union

from ascii_art import AsciiConverter, decode
from errors import DecodeError, PipelineError
from events import FrameReady, RenderFailed
from iiif import image_request
from models import AsciiFrame, RenderJob
from services import CatalogService, ImageFetcher

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Superseded(Exception):
    """A newer job was submitted while this one was still running."""


class ArtworkPipeline:
    """Turns a RenderJob into an AsciiFrame: detail, image URL, bytes, pixels, glyphs.

    Each blocking step runs in a worker thread. Between steps a job checks
    whether a newer generation has been submitted and, if so, stops early and
    resolves to None. Whether a finished result is shown is decided by the
    state machine, not here.
    """

    def __init__(self, catalog: CatalogService, fetcher: ImageFetcher, converter: AsciiConverter,
                 image_width: int = 843):
        self.catalog = catalog
        self.fetcher = fetcher
        self.converter = converter
        self.image_width = image_width
        self._newest = 0

    async def _step(self, job: RenderJob, func: Callable[..., T], *args) -> T:
        if job.generation < self._newest:
            raise Superseded()
        return await asyncio.to_thread(func, *args)

    async def run(self, job: RenderJob) -> Optional[Union[FrameReady, RenderFailed]]:
        self._newest = max(self._newest, job.generation)
        try:
            detail = await self._step(job, self.catalog.artwork, job.artwork_id)
            request = image_request(detail, width=self.image_width)
            data = await self._step(job, self.fetcher.fetch, request.url(), request.identifier)
            try:
                image = await self._step(job, decode, data)
            except DecodeError:
                await asyncio.to_thread(self.fetcher.discard, request.identifier)
                raise
            await asyncio.to_thread(self.fetcher.store, request.identifier, data)
            lines = await self._step(job, self.converter.convert, image, job.width)
        except Superseded:
            logger.debug("Abandoned superseded job %s", job)
            return None
        except PipelineError as e:
            e.generation = job.generation
            logger.warning("Job %s failed: %s", job, e)
            return RenderFailed(error=e, generation=job.generation)
        except Exception as e:
            logger.exception("Unexpected failure in job %s", job)
            return RenderFailed(error=PipelineError(str(e), job.generation), generation=job.generation)
        return FrameReady(AsciiFrame(artwork_id=job.artwork_id, generation=job.generation, lines=tuple(lines)))
