# greetlink/infrastructure/image/image_process.py
from io import BytesIO
from typing import Tuple

from PIL import Image, ImageOps


def bounded_size(size: Tuple[int, int], max_dimension: int) -> Tuple[int, int]:
    width, height = size
    scale = min(1.0, max_dimension / max(width, height))
    if scale >= 1.0:
        return width, height
    return max(1, round(width * scale)), max(1, round(height * scale))


def compress_image(data: bytes, max_dimension: int = 1200, quality: int = 85) -> bytes:
    """Re-encode a photo as JPEG with its longest side capped at max_dimension. Never upscales."""
    with Image.open(BytesIO(data)) as src:
        img = ImageOps.exif_transpose(src)
        target = bounded_size(img.size, max_dimension)
        if target != img.size:
            img = img.resize(target, Image.Resampling.LANCZOS)
        # JPEG can't have alpha
        if img.mode != "RGB":
            img = img.convert("RGB")

        buf = BytesIO()
        img.save(buf, format="JPEG", quality=quality, optimize=True)
    return buf.getvalue()
