"""
Abstract base class for resource encoders.

Encoders turn a fetched binary body into the textual form stored in the
cache and handed to load listeners, and back again for export.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class ResourceEncoder(ABC):
    """Abstract base class for resource encoders.

    Encoders handle:
    - Encoding a binary body plus its content type to text
    - Decoding that text back to content type and bytes
    - Exporting decoded bytes to a file
    - Importing a file as encoded text

    Example:
        >>> class HexEncoder(ResourceEncoder):
        ...     def encode(self, content_type, buffer):
        ...         return f"{content_type}:{buffer.hex()}"
        ...     def decode(self, text):
        ...         content_type, _, payload = text.partition(":")
        ...         return content_type, bytes.fromhex(payload)
        ...     # ... export/import methods
    """

    @abstractmethod
    def encode(self, content_type: str, buffer: bytes) -> str:
        """Encode a binary body to text.

        Args:
            content_type: MIME type of the body, used verbatim.
            buffer: The raw body.

        Returns:
            Textual representation of the resource.
        """
        ...

    @abstractmethod
    def decode(self, text: str) -> tuple[str, bytes]:
        """Decode text produced by encode().

        Args:
            text: Encoded resource.

        Returns:
            Tuple of (content type, raw bytes).

        Raises:
            ValueError: If text is not in this encoder's format.
        """
        ...

    def export(self, text: str, path: Path) -> None:
        """Write the decoded bytes of an encoded resource to a file.

        Args:
            text: Encoded resource.
            path: Destination file path.
        """
        _, buffer = self.decode(text)
        path.write_bytes(buffer)

    @abstractmethod
    def import_(self, path: Path, content_type: Optional[str] = None) -> str:
        """Encode the contents of a file.

        Args:
            path: Source file path.
            content_type: MIME type; guessed from the file name if omitted.

        Returns:
            Encoded resource.
        """
        ...
