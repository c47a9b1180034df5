"""Turn raw image sources into embeddable data URIs."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
from pathlib import Path
from typing import Union

from .exceptions import EncodingError
from .models import ImagePart

LOGGER = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path]

DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024

# Magic-number prefixes for the image formats the file picker accepts.
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)


def sniff_mime_type(data: bytes) -> str | None:
    """Return the image MIME type implied by the leading bytes, if any."""
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    for signature, mime in _SIGNATURES:
        if data.startswith(signature):
            return mime
    return None


def build_data_uri(data: bytes, mime_type: str) -> str:
    """Encode bytes as a ``data:<mime>;base64,<payload>`` URI."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


class ContentEncoder:
    """Byte-to-URI transform for image attachments.

    Accepts raw bytes, a filesystem path, an existing ``data:`` URI, or an
    ``http(s)`` URL. Reading a path happens off the event loop. No resizing,
    compression, or dimension checks are performed.
    """

    def __init__(self, max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> None:
        self.max_image_bytes = max(1, max_image_bytes)

    async def encode(self, source: ImageSource) -> ImagePart:
        """Return an ``ImagePart`` for *source* or raise ``EncodingError``."""
        if isinstance(source, (bytes, bytearray)):
            return self._encode_bytes(bytes(source), path=None)

        if isinstance(source, str):
            stripped = source.strip()
            if stripped.startswith("data:"):
                self._validate_data_uri(stripped)
                return ImagePart(stripped)
            if stripped.startswith(("http://", "https://")):
                return ImagePart(stripped)
            if not stripped:
                raise EncodingError("Image source is empty.")
            source = Path(stripped)

        if isinstance(source, Path):
            path = source.expanduser()
            data = await asyncio.to_thread(self._read_path, path)
            return self._encode_bytes(data, path=path)

        raise EncodingError(f"Unsupported image source type: {type(source).__name__}")

    def _read_path(self, path: Path) -> bytes:
        try:
            if not path.is_file():
                raise EncodingError(f"Image not found: {path}")
            size = path.stat().st_size
            if size > self.max_image_bytes:
                raise EncodingError(
                    f"Image too large ({size} bytes). Max is {self.max_image_bytes} bytes."
                )
            return path.read_bytes()
        except OSError as exc:
            raise EncodingError(f"Unable to read image {path}: {exc}") from exc

    def _encode_bytes(self, data: bytes, path: Path | None) -> ImagePart:
        if not data:
            raise EncodingError("Image source produced zero bytes.")
        if len(data) > self.max_image_bytes:
            raise EncodingError(
                f"Image too large ({len(data)} bytes). Max is {self.max_image_bytes} bytes."
            )

        mime_type = sniff_mime_type(data)
        if mime_type is None and path is not None:
            guessed, _ = mimetypes.guess_type(path.name)
            if guessed and guessed.startswith("image/"):
                mime_type = guessed
        if mime_type is None:
            raise EncodingError("Unsupported or corrupt image data.")

        LOGGER.debug(
            "encoder.image.encoded",
            extra={
                "event": "encoder.image.encoded",
                "mime_type": mime_type,
                "size_bytes": len(data),
            },
        )
        return ImagePart(build_data_uri(data, mime_type))

    def _validate_data_uri(self, uri: str) -> None:
        header, sep, payload = uri[len("data:") :].partition(",")
        if not sep:
            raise EncodingError("Malformed data URI: missing payload separator.")
        mime_type, _, params = header.partition(";")
        if not mime_type.startswith("image/"):
            raise EncodingError(f"Data URI is not an image: {mime_type or 'unknown'}")
        if params != "base64":
            raise EncodingError("Data URI must be base64 encoded.")
        try:
            decoded = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EncodingError(f"Data URI payload is not valid base64: {exc}") from exc
        if not decoded:
            raise EncodingError("Data URI payload is empty.")
        if len(decoded) > self.max_image_bytes:
            raise EncodingError(
                f"Image too large ({len(decoded)} bytes). Max is {self.max_image_bytes} bytes."
            )
