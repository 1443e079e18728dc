# iiif.py
"""Builds IIIF Image API 2.0 request URLs.

A request URL has the shape
``{base}/{identifier}/{region}/{size}/{rotation}/{quality}.{format}``.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from errors import NotFoundError
from models import ArtworkDetail

QUALITIES = ("default", "color", "gray", "bitonal")
FORMATS = ("jpg", "png")


@dataclass(frozen=True)
class ImageRequest:
    """Parameters of a single IIIF image request."""
    base_url: str
    identifier: str
    region: str = "full"
    size: str = "843,"
    rotation: float = 0
    quality: str = "default"
    format: str = "jpg"

    def with_width(self, width: int) -> "ImageRequest":
        if width < 1:
            raise ValueError("width must be positive")
        return replace(self, size=f"{width},")

    def with_quality(self, quality: str) -> "ImageRequest":
        if quality not in QUALITIES:
            raise ValueError(f"unknown quality '{quality}'")
        return replace(self, quality=quality)

    def with_format(self, fmt: str) -> "ImageRequest":
        if fmt not in FORMATS:
            raise ValueError(f"unknown format '{fmt}'")
        return replace(self, format=fmt)

    def url(self) -> str:
        rotation = f"{self.rotation:g}"
        base = self.base_url.rstrip("/")
        return f"{base}/{self.identifier}/{self.region}/{self.size}/{rotation}/{self.quality}.{self.format}"

    def __str__(self) -> str:
        return self.url()


def pick_identifier(detail: ArtworkDetail) -> Optional[str]:
    """The primary image, or the first alternate when the primary is missing."""
    if detail.image_id:
        return detail.image_id
    alternates: Tuple[str, ...] = tuple(i for i in detail.alt_image_ids if i)
    return alternates[0] if alternates else None


def image_request(detail: ArtworkDetail, width: int = 843, quality: str = "default",
                  fmt: str = "jpg") -> ImageRequest:
    identifier = pick_identifier(detail)
    if identifier is None:
        raise NotFoundError(f"artwork {detail.id} has no image")
    request = ImageRequest(base_url=detail.iiif_url, identifier=identifier)
    return request.with_width(width).with_quality(quality).with_format(fmt)
