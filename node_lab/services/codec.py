"""
Image fetching and raster operations backed by Pillow.
"""
import logging
from io import BytesIO

from PIL import Image

from node_lab.services.base import InlineImage
from node_lab.services.http import fetch_bytes

logger = logging.getLogger(__name__)

PNG_MODES = frozenset({'1', 'L', 'LA', 'P', 'RGB', 'RGBA', 'I', 'I;16'})


class PillowImageCodec:

    async def fetch(self, url: str) -> bytes:
        body, _ = await fetch_bytes(url)
        return body

    async def fetch_inline(self, url: str) -> InlineImage:
        body, mime_type = await fetch_bytes(url)
        if not mime_type.startswith('image/'):
            mime_type = self.sniff_mime_type(body)
        return InlineImage.from_bytes(body, mime_type)

    async def load(self, url: str) -> Image.Image:
        return self.decode(await self.fetch(url))

    def decode(self, raw: bytes) -> Image.Image:
        image = Image.open(BytesIO(raw))
        image.load()
        logger.debug("Decoded %s image %dx%d", image.format, image.width, image.height)
        return image

    def crop(self, raster: Image.Image, box: tuple[int, int, int, int]) -> Image.Image:
        """Crop ``box`` given as (left, top, width, height)."""
        left, top, width, height = box
        return raster.crop((left, top, left + width, top + height))

    def encode_png(self, raster: Image.Image) -> bytes:
        if raster.mode not in PNG_MODES:
            # CMYK, YCbCr and friends cannot be written as PNG
            raster = raster.convert('RGBA' if 'A' in raster.getbands() else 'RGB')
        buffer = BytesIO()
        raster.save(buffer, format='PNG')
        return buffer.getvalue()

    def sniff_mime_type(self, raw: bytes) -> str:
        try:
            with Image.open(BytesIO(raw)) as image:
                return Image.MIME.get(image.format, 'image/png')
        except OSError:
            return 'image/png'
