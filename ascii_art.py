# ascii_art.py
import io
from typing import List

from PIL import Image, ImageOps, UnidentifiedImageError

from errors import DecodeError

ALPHABETS = {
    "standard": " .:-=+*#%@",
    "blocks": " ░▒▓█",
    "minimal": " .:#",
    "letters": " .,ilwWM@",
}

# Terminal cells are roughly twice as tall as they are wide.
GLYPH_ASPECT = 0.5


def decode(data: bytes) -> Image.Image:
    """Decodes raw image bytes into a Pillow image."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"{len(data)} bytes are not a readable image ({e})") from e
    return image


class AsciiConverter:
    """Maps the luminance of each terminal cell onto a glyph alphabet."""

    def __init__(self, alphabet: str = "standard", invert: bool = False):
        glyphs = ALPHABETS.get(alphabet, alphabet)
        if len(glyphs) < 2:
            raise ValueError("an alphabet needs at least two glyphs")
        self.glyphs = glyphs[::-1] if invert else glyphs

    def grid_size(self, image: Image.Image, width: int) -> tuple:
        width = max(1, width)
        src_w, src_h = image.size
        rows = max(1, round(src_h / max(1, src_w) * width * GLYPH_ASPECT))
        return width, rows

    def convert(self, image: Image.Image, width: int) -> List[str]:
        columns, rows = self.grid_size(image, width)
        gray = ImageOps.grayscale(image).resize((columns, rows))
        pixels = gray.tobytes()
        scale = len(self.glyphs) - 1
        lines = []
        for row in range(rows):
            cells = pixels[row * columns:(row + 1) * columns]
            lines.append("".join(self.glyphs[round(p / 255 * scale)] for p in cells))
        return lines
