# services.py
import logging
import os
import threading
from pathlib import Path
from typing import Optional, Tuple

import requests

from config import Config
from errors import NetworkError, NotFoundError
from models import ArtworkDetail, ArtworkSummary, summaries_from_json

logger = logging.getLogger(__name__)


def build_session(config: Config) -> requests.Session:
    """A requests session carrying the headers the AIC API asks clients to send."""
    session = requests.Session()
    session.headers.update({
        "User-Agent": config.user_agent,
        "AIC-User-Agent": f"{config.user_agent} ({config.contact})",
    })
    return session


def _get(session: requests.Session, url: str, timeout: float, **kwargs) -> requests.Response:
    """Performs a GET, translating requests failures into pipeline errors."""
    try:
        response = session.get(url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise NetworkError(f"timed out after {timeout:g}s fetching {url}") from e
    except requests.RequestException as e:
        raise NetworkError(f"could not fetch {url}: {e}") from e
    if response.status_code == 404:
        raise NotFoundError(f"{url} does not exist")
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        raise NetworkError(str(e)) from e
    return response


class CatalogService:
    """A service to handle interactions with the Art Institute of Chicago API."""
    SEARCH_FIELDS = "id,title,image_id"
    DETAIL_FIELDS = "id,title,image_id,alt_image_ids"

    def __init__(self, session: requests.Session, config: Config):
        self.session = session
        self.base_url = config.api_base_url.rstrip("/")
        self.default_iiif_url = config.iiif_base_url
        self.timeout = config.request_timeout
        self.limit = config.search_limit

    def search(self, query: str, limit: Optional[int] = None) -> Tuple[ArtworkSummary, ...]:
        """Searches public-domain artworks, keeping the API's relevance order."""
        params = {
            "q": query,
            "query[term][is_public_domain]": "true",
            "fields": self.SEARCH_FIELDS,
            "limit": limit or self.limit,
        }
        logger.info("Searching artworks for %r", query)
        response = _get(self.session, f"{self.base_url}/artworks/search", self.timeout, params=params)
        results = summaries_from_json(self._json(response).get("data") or [])
        logger.info("Search for %r returned %d artworks", query, len(results))
        return results

    def artwork(self, artwork_id: int) -> ArtworkDetail:
        """Fetches the record of a single artwork."""
        url = f"{self.base_url}/artworks/{artwork_id}"
        response = _get(self.session, url, self.timeout, params={"fields": self.DETAIL_FIELDS})
        return self._parse_item(self._json(response), artwork_id)

    def _json(self, response: requests.Response) -> dict:
        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError(f"malformed JSON from {response.url}") from e
        if not isinstance(body, dict):
            raise NetworkError(f"unexpected payload from {response.url}")
        return body

    def _parse_item(self, body: dict, artwork_id: int) -> ArtworkDetail:
        """Parses a raw detail response into our ArtworkDetail data model."""
        data = body.get("data")
        if not data:
            raise NotFoundError(f"artwork {artwork_id} has no data")
        iiif_url = (body.get("config") or {}).get("iiif_url") or self.default_iiif_url
        return ArtworkDetail(
            id=int(data.get("id", artwork_id)),
            title=data.get("title") or "Untitled",
            image_id=data.get("image_id"),
            alt_image_ids=tuple(data.get("alt_image_ids") or ()),
            iiif_url=iiif_url,
        )


class ImageFetcher:
    """A service to download image bytes, keeping a copy on disk."""

    def __init__(self, session: requests.Session, config: Config):
        self.session = session
        self.timeout = config.request_timeout
        self.cache_dir: Optional[Path] = config.image_cache_dir if config.use_cache else None

    def _cache_path(self, cache_key: Optional[str]) -> Optional[Path]:
        if self.cache_dir is None or not cache_key:
            return None
        return self.cache_dir / f"{cache_key}.jpg"

    def fetch(self, url: str, cache_key: Optional[str] = None) -> bytes:
        path = self._cache_path(cache_key)
        if path is not None and path.exists():
            logger.info("Reading %s from disk", path.name)
            return path.read_bytes()

        logger.info("Downloading %s", url)
        return _get(self.session, url, self.timeout).content

    def store(self, cache_key: Optional[str], data: bytes) -> None:
        """Caches bytes that are known to decode. The file appears atomically."""
        path = self._cache_path(cache_key)
        if path is None or path.exists():
            return
        partial = path.with_name(f"{path.name}.{os.getpid()}-{threading.get_ident()}.part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(data)
            os.replace(partial, path)
        except OSError:
            logger.warning("Could not cache image at %s", path, exc_info=True)
            partial.unlink(missing_ok=True)

    def discard(self, cache_key: Optional[str]) -> None:
        path = self._cache_path(cache_key)
        if path is not None and path.exists():
            logger.warning("Removing unreadable cached image %s", path)
            path.unlink(missing_ok=True)
