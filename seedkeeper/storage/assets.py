"""
Read-only access to the bundled application assets.

Layout under the asset root:
    <root>/
        <database name>        seed image, copied verbatim to become the live file
        migrations/
            1.sql
            2.sql
            ...

Example:
    >>> assets = AssetBundle("./assets")
    >>> assets.list("migrations")
    ['1.sql', '2.sql', '10.sql']
    >>> with assets.open("app.db") as stream:
    ...     header = stream.read(16)
"""

from pathlib import Path
from typing import BinaryIO

from seedkeeper.exceptions import AssetIOError


class AssetBundle:
    """Asset bundle rooted at a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path(self, name: str) -> Path:
        """Filesystem path of an asset (may not exist)."""
        return self.root / name

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()

    def open(self, name: str) -> BinaryIO:
        """
        Open an asset as a binary stream.

        Raises:
            AssetIOError: If the asset is missing or unreadable
        """
        try:
            return self.path(name).open("rb")
        except OSError as e:
            raise AssetIOError(f"Failed to open asset {name!r} under {self.root}: {e}") from e

    def read_bytes(self, name: str) -> bytes:
        """
        Read an asset fully.

        Raises:
            AssetIOError: If the asset is missing or unreadable
        """
        with self.open(name) as stream:
            try:
                return stream.read()
            except OSError as e:
                raise AssetIOError(f"Failed to read asset {name!r}: {e}") from e

    def list(self, directory: str) -> list[str]:
        """
        List file names in an asset directory, in no particular order.

        A missing directory lists as empty.

        Raises:
            AssetIOError: If the directory exists but cannot be listed
        """
        path = self.path(directory)
        if not path.is_dir():
            return []
        try:
            return [entry.name for entry in path.iterdir() if entry.is_file()]
        except OSError as e:
            raise AssetIOError(f"Failed to list asset directory {directory!r}: {e}") from e

    def __repr__(self) -> str:
        return f"AssetBundle({str(self.root)!r})"
