"""Convert uploaded photos into images the PDF canvas can place."""

import io
import logging

from PIL import Image
from reportlab.lib.utils import ImageReader

logger = logging.getLogger(__name__)

JPEG_QUALITY = 85


def to_jpeg(image_bytes: bytes, quality: int = JPEG_QUALITY) -> bytes:
    """
    Re-encode any decodable image as baseline RGB JPEG.

    Transparent areas are flattened onto white.

    Raises:
        PIL.UnidentifiedImageError / OSError: If the bytes are not an image
    """
    with Image.open(io.BytesIO(image_bytes)) as img:
        img.load()
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, (255, 255, 255))
            flattened.paste(rgba, mask=rgba.split()[-1])
        else:
            flattened = img.convert("RGB")

    buffer = io.BytesIO()
    flattened.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def to_embeddable(image_bytes: bytes) -> ImageReader:
    """
    Prepare photo bytes for drawImage.

    Args:
        image_bytes: Raw upload bytes

    Returns:
        ImageReader over the re-encoded JPEG

    Raises:
        ValueError: If image_bytes is empty
        OSError: If Pillow cannot decode the image
    """
    if not image_bytes:
        raise ValueError("Empty image data")
    jpeg = to_jpeg(image_bytes)
    logger.debug(f"Converted photo for embedding: {len(image_bytes)} -> {len(jpeg)} bytes")
    return ImageReader(io.BytesIO(jpeg))
