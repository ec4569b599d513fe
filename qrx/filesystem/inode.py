"""
Inode Module

Implements the inode abstraction for the virtual file system.
Inodes store file content, directory entries and timestamps.

Author: YSNRFD
Version: 1.0.0
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List


class FileType(Enum):
    """Types of files."""
    REGULAR = 1
    DIRECTORY = 2


@dataclass
class Inode:
    """
    Inode - Index Node.

    Stores metadata about a file or directory:
    - Type and mode
    - Size and timestamps
    - Content (regular files) or name -> inode number entries (directories)
    """

    ino: int  # Inode number
    file_type: FileType
    mode: int = 0o644
    size: int = 0

    # Timestamps
    atime: float = field(default_factory=time.time)  # Access time
    mtime: float = field(default_factory=time.time)  # Modification time
    ctime: float = field(default_factory=time.time)  # Change time

    _data: bytes = field(default_factory=bytes, repr=False)

    # For directories: mapping of name -> inode number
    _entries: dict[str, int] = field(default_factory=dict, repr=False)

    @property
    def is_directory(self) -> bool:
        return self.file_type == FileType.DIRECTORY

    @property
    def is_regular_file(self) -> bool:
        return self.file_type == FileType.REGULAR

    def touch(self, atime: Optional[float] = None, mtime: Optional[float] = None) -> None:
        """Update access and modification times."""
        now = time.time()
        self.atime = now if atime is None else atime
        self.mtime = now if mtime is None else mtime
        self.ctime = now

    # File operations

    def read(self) -> bytes:
        """Return the whole content of a regular file."""
        if not self.is_regular_file:
            return bytes()

        self.atime = time.time()
        return self._data

    def write(self, data: bytes) -> int:
        """
        Replace the content of a regular file.

        Args:
            data: New content

        Returns:
            Number of bytes written
        """
        if not self.is_regular_file:
            return 0

        self._data = bytes(data)
        self.size = len(self._data)
        self.mtime = time.time()
        self.ctime = self.mtime

        return len(data)

    # Directory operations

    def add_entry(self, name: str, ino: int) -> None:
        """Add a directory entry."""
        if not self.is_directory:
            raise ValueError("Not a directory")

        self._entries[name] = ino
        self.mtime = time.time()

    def remove_entry(self, name: str) -> Optional[int]:
        """Remove a directory entry."""
        if not self.is_directory:
            raise ValueError("Not a directory")

        ino = self._entries.pop(name, None)
        if ino is not None:
            self.mtime = time.time()
        return ino

    def get_entry(self, name: str) -> Optional[int]:
        """Get the inode number for a directory entry."""
        if not self.is_directory:
            return None
        return self._entries.get(name)

    def list_entries(self) -> List[tuple[str, int]]:
        """List directory entries sorted by name."""
        if not self.is_directory:
            return []
        return sorted(self._entries.items())
