"""Image normalization for remote generation models.

Two paths:

- ``normalize`` enforces the hard constraints (tile aligned dimensions,
  minimum size, payload ceiling) and raises when they cannot be met.
- ``optimize_for_generation`` is a best-effort shrink applied right before a
  provider call. It never raises and hands back the original bytes if
  anything goes wrong.
"""
import base64
from dataclasses import dataclass
from io import BytesIO
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from ..utils.logger import logger
from .errors import ImageTooLarge, InvalidImage

TILE = 8
MIN_SIDE = 512
MB = 1024 * 1024


@dataclass
class ImageBuffer:
    """Encoded image plus what we know about it"""
    data: bytes
    width: int
    height: int
    format: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def _open(data: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(data))
    except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
        raise ImageTooLarge(f"Image has too many pixels: {e}") from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise InvalidImage(f"Could not read image: {e}") from e

    if not image.width or not image.height:
        raise InvalidImage("Could not read image dimensions")

    # Refuse before decoding, Pillow only warns below twice its limit
    max_pixels = Image.MAX_IMAGE_PIXELS
    if max_pixels and image.width * image.height > max_pixels:
        raise ImageTooLarge(f"Image is {image.width}x{image.height}, limit is {max_pixels} pixels")

    try:
        image.load()
    except (OSError, ValueError) as e:
        raise InvalidImage(f"Could not read image: {e}") from e
    return image


def target_dimensions(width: int, height: int, max_side: int) -> Tuple[int, int]:
    """Scale the longer side down to `max_side`, align to 8 and clamp to 512"""
    if max(width, height) > max_side:
        if width >= height:
            height = round(height * max_side / width)
            width = max_side
        else:
            width = round(width * max_side / height)
            height = max_side

    width = max((width // TILE) * TILE, MIN_SIDE)
    height = max((height // TILE) * TILE, MIN_SIDE)
    return width, height


def _encode_jpeg(image: Image.Image, size: Tuple[int, int], quality: int) -> bytes:
    resized = ImageOps.fit(image, size, method=Image.LANCZOS)
    if resized.mode != "RGB":
        resized = resized.convert("RGB")

    buffer = BytesIO()
    resized.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def normalize(
    data: bytes,
    max_side: int = 1024,
    max_bytes: int = 20 * MB,
    quality: int = 85,
    fallback_side: int = 768,
    fallback_quality: int = 75,
) -> ImageBuffer:
    """Resize and re-encode an uploaded photo for the generation models"""
    image = _open(data)
    original_size = image.size
    image = ImageOps.exif_transpose(image)

    width, height = target_dimensions(image.width, image.height, max_side)
    encoded = _encode_jpeg(image, (width, height), quality)

    if len(encoded) > max_bytes:
        logger.info(
            f"Normalized image is {len(encoded)} bytes (limit {max_bytes}), "
            f"retrying at {fallback_side}x{fallback_side} q{fallback_quality}"
        )
        width, height = fallback_side, fallback_side
        encoded = _encode_jpeg(image, (width, height), fallback_quality)

        if len(encoded) > max_bytes:
            raise ImageTooLarge(f"Image is {len(encoded)} bytes after compression, limit is {max_bytes}")

    logger.info(
        f"Image normalized: {original_size[0]}x{original_size[1]} ({len(data)} bytes) -> "
        f"{width}x{height} ({len(encoded)} bytes)"
    )
    return ImageBuffer(data=encoded, width=width, height=height, format="JPEG")


def optimize_for_generation(
    data: bytes,
    max_side: int = 1024,
    max_bytes: int = 4 * MB,
    quality: int = 85,
    recompress_quality: int = 70,
) -> bytes:
    """Shrink an image before sending it to a provider, keeping the original on failure"""
    try:
        image = Image.open(BytesIO(data))
        optimized = data

        if image.width > max_side or image.height > max_side:
            image = image.convert("RGB")
            image.thumbnail((max_side, max_side), Image.LANCZOS)
            buffer = BytesIO()
            image.save(buffer, format="JPEG", quality=quality)
            optimized = buffer.getvalue()
            logger.info(f"Image optimized for generation: {len(data)} -> {len(optimized)} bytes")

        if len(optimized) > max_bytes:
            image = Image.open(BytesIO(optimized)).convert("RGB")
            buffer = BytesIO()
            image.save(buffer, format="JPEG", quality=recompress_quality)
            optimized = buffer.getvalue()
            logger.info(f"Image recompressed for generation: {len(optimized)} bytes")

        return optimized

    except Exception as e:
        logger.warning(f"Failed to optimize image, using original: {e}")
        return data


def to_data_url(data: bytes) -> str:
    """Encode image bytes as a data URL, sniffing the MIME type"""
    image = _open(data)
    mime_type = Image.MIME.get(image.format or "", "image/jpeg")
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
