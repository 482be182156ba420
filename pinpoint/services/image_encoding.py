"""JPEG encoding of screenshots."""

import io
import warnings

from PIL import Image, UnidentifiedImageError

# Modes JPEG can store directly; anything else is flattened to RGB first.
_JPEG_MODES = ("RGB", "L", "CMYK")


class ImageEncodingError(ValueError):
    """The image could not be serialized as JPEG."""


def encode_jpeg(data: bytes, quality: float = 0.8) -> bytes:
    """Re-encode raw image bytes (PNG, JPEG, ...) as JPEG.

    Images whose declared size exceeds Pillow's ``MAX_IMAGE_PIXELS`` are
    refused rather than decoded.

    Args:
        data: Encoded source image.
        quality: Compression quality in ``[0, 1]``; mapped to Pillow's 0-100 scale.

    Raises:
        ImageEncodingError: If the bytes are not a decodable image, the image
            is too large, or the encoder rejects it.
    """
    if not data:
        raise ImageEncodingError("empty image")
    if not 0.0 <= quality <= 1.0:
        raise ImageEncodingError(f"quality out of range: {quality}")

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            img = Image.open(io.BytesIO(data))
            if img.mode not in _JPEG_MODES:
                img = img.convert("RGB")
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=round(quality * 100))
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        Image.DecompressionBombWarning,
        OSError,
        ValueError,
    ) as e:
        raise ImageEncodingError(str(e)) from e
    return out.getvalue()
