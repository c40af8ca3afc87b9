# fieldsign/logic/image_decoder.py
from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

from ..exceptions.errors import DecodeError
from ..models.field_enums import ImageEncoding
from ..models.signing_models import SignaturePayload

_FORMATS = {"PNG": ImageEncoding.PNG, "JPEG": ImageEncoding.JPEG}


def decode_signature(image_bytes: bytes) -> SignaturePayload:
    """
    Decode the signature image once per signing operation.

    Only PNG and JPEG are accepted. Anything else, or a truncated/corrupt
    raster, raises DecodeError.
    """
    if not image_bytes:
        raise DecodeError("Signature image is empty.")
    try:
        with Image.open(io.BytesIO(image_bytes)) as im:
            fmt = im.format
            im.load()  # force full decode, Image.open only reads the header
            width, height = im.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError,
            EOFError) as ex:
        raise DecodeError(f"Invalid image format. Please use PNG or JPEG. ({ex})") from ex

    encoding = _FORMATS.get(fmt or "")
    if encoding is None:
        raise DecodeError(f"Unsupported image format '{fmt}'. Please use PNG or JPEG.")
    if width <= 0 or height <= 0:
        raise DecodeError("Signature image has no pixels.")
    return SignaturePayload(image_bytes=bytes(image_bytes), encoding=encoding, width=width, height=height)


def open_for_drawing(payload: SignaturePayload) -> Image.Image:
    """PIL image ready for reportlab; PNG keeps its alpha channel."""
    with Image.open(io.BytesIO(payload.image_bytes)) as im:
        return im.convert("RGBA" if payload.encoding == ImageEncoding.PNG else "RGB")
