"""
Data URI encoder with a byte-wise base-64 implementation.

Produces ``data:<content-type>;base64,<payload>`` strings suitable for use
directly as a resource reference. The payload uses the RFC 4648 alphabet
with ``=`` padding and no line wrapping.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
from pathlib import Path
from typing import Optional

from resource_loader.encoders.base import ResourceEncoder

DATA_URI_SCHEME = "data:"
BASE64_MARKER = ";base64,"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

BASE64_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
)


def encode_base64(buffer: bytes) -> str:
    """Encode bytes as standard base-64.

    Works on the buffer three bytes at a time: each group becomes a 24-bit
    value split into four 6-bit alphabet indices, most significant first.
    A trailing single byte yields two characters and ``==``; two trailing
    bytes yield three characters and ``=``.

    Args:
        buffer: Raw bytes (any values).

    Returns:
        Base-64 text of length ``ceil(len(buffer) / 3) * 4``.
    """
    data = memoryview(bytes(buffer))
    length = len(data)
    out: list[str] = []
    i = 0
    while length - i >= 3:
        v = (data[i] << 16) | (data[i + 1] << 8) | data[i + 2]
        i += 3
        out.append(BASE64_ALPHABET[(v >> 18) & 63])
        out.append(BASE64_ALPHABET[(v >> 12) & 63])
        out.append(BASE64_ALPHABET[(v >> 6) & 63])
        out.append(BASE64_ALPHABET[v & 63])

    remainder = length - i
    if remainder == 1:
        v = data[i] << 16
        out.append(BASE64_ALPHABET[(v >> 18) & 63])
        out.append(BASE64_ALPHABET[(v >> 12) & 63])
        out.append("==")
    elif remainder == 2:
        v = (data[i] << 16) | (data[i + 1] << 8)
        out.append(BASE64_ALPHABET[(v >> 18) & 63])
        out.append(BASE64_ALPHABET[(v >> 12) & 63])
        out.append(BASE64_ALPHABET[(v >> 6) & 63])
        out.append("=")
    return "".join(out)


def create_data_uri(content_type: str, buffer: bytes) -> str:
    """Build a data URI from a content type and a binary body.

    Args:
        content_type: MIME type, used verbatim.
        buffer: Raw body.

    Returns:
        ``data:<content_type>;base64,<payload>``.
    """
    return DATA_URI_SCHEME + content_type + BASE64_MARKER + encode_base64(
        buffer
    )


def is_data_uri(text: str) -> bool:
    """Check whether text looks like a base-64 data URI."""
    return text.startswith(DATA_URI_SCHEME) and BASE64_MARKER in text


class DataUriEncoder(ResourceEncoder):
    """Encodes resources as base-64 data URIs.

    Example:
        >>> encoder = DataUriEncoder()
        >>> encoder.encode("text/plain", b"Man")
        'data:text/plain;base64,TWFu'
        >>> encoder.decode("data:text/plain;base64,TWFu")
        ('text/plain', b'Man')
    """

    def encode(self, content_type: str, buffer: bytes) -> str:
        """Encode a body as a data URI."""
        return create_data_uri(content_type, buffer)

    def decode(self, text: str) -> tuple[str, bytes]:
        """Split a data URI into content type and decoded bytes.

        Raises:
            ValueError: If text is not a base-64 data URI or its payload is
                not valid base-64.
        """
        if not is_data_uri(text):
            raise ValueError(f"Not a base64 data URI: {text[:40]!r}")
        header, _, payload = text[len(DATA_URI_SCHEME) :].partition(
            BASE64_MARKER
        )
        try:
            buffer = base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
        return header, buffer

    def import_(self, path: Path, content_type: Optional[str] = None) -> str:
        """Encode a file as a data URI.

        Args:
            path: Source file path.
            content_type: MIME type; guessed from the file name if omitted,
                falling back to application/octet-stream.

        Returns:
            Data URI for the file contents.
        """
        if content_type is None:
            guessed, _ = mimetypes.guess_type(path.name)
            content_type = guessed or DEFAULT_CONTENT_TYPE
        return self.encode(content_type, path.read_bytes())

    def extension_for(self, content_type: str) -> str:
        """Pick a file extension for exported data of a content type."""
        media_type = content_type.split(";", 1)[0].strip()
        return mimetypes.guess_extension(media_type) or ".bin"
