"""Local file storage for card images."""

import logging
from pathlib import Path
from typing import Union
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)


def uri_to_path(uri: Union[str, Path]) -> Path:
    """Resolve a plain path or file:// URI to a filesystem path."""
    if isinstance(uri, Path):
        return uri
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    if parsed.scheme and len(parsed.scheme) > 1:
        raise ValueError(f"Unsupported URI scheme for local storage: {uri}")
    return Path(uri)


class FileStorage:
    """Read and write whole files by path or file:// URI."""

    def read(self, uri: Union[str, Path]) -> bytes:
        """
        Load file contents.

        Raises:
            OSError: File missing or unreadable
        """
        path = uri_to_path(uri)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            logger.error(f"Error reading file '{path}': {e}")
            raise

    def write(self, uri: Union[str, Path], data: bytes) -> None:
        """Write file contents, creating parent directories as needed."""
        path = uri_to_path(uri)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Error saving file to '{path}': {e}")
            raise

    def delete(self, uri: Union[str, Path]) -> bool:
        """Remove a file. Returns False if it did not exist."""
        path = uri_to_path(uri)
        if not path.exists():
            return False
        path.unlink()
        return True

    def exists(self, uri: Union[str, Path]) -> bool:
        return uri_to_path(uri).exists()
