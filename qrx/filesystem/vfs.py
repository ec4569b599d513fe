"""
Virtual File System (VFS) Module

The storage the shell reads and writes:
- Hierarchical directory tree of inodes held in memory
- Async file operations (every call is an await point)
- Path resolution relative to a working directory
- Per-file size limit

The executor only needs read_file, write_file and stat (for redirection
and override lookup); the rest is used by the command catalog.

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, List, Union

from .inode import Inode, FileType
from .path_resolver import PathResolver
from qrx.exceptions import (
    FileSystemException,
    FileNotFoundError,
    FileExistsError,
    DirectoryNotEmptyError,
    NotAFileError,
    NotADirectoryError,
    DiskFullError,
    PathResolutionError,
)
from qrx.logger import get_logger


@dataclass
class Stat:
    """Result of a stat() call."""
    ino: int
    file_type: FileType
    size: int
    mode: int
    atime: float
    mtime: float
    ctime: float

    @property
    def is_directory(self) -> bool:
        return self.file_type == FileType.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.file_type == FileType.REGULAR

    @classmethod
    def from_inode(cls, inode: Inode) -> 'Stat':
        return cls(
            ino=inode.ino,
            file_type=inode.file_type,
            size=inode.size,
            mode=inode.mode,
            atime=inode.atime,
            mtime=inode.mtime,
            ctime=inode.ctime,
        )


class FileSystemInterface(ABC):
    """
    What the shell needs from storage.

    Paths may be relative; they are resolved against `cwd`.
    Missing paths raise qrx.exceptions.FileNotFoundError.
    """

    @abstractmethod
    async def read_file(self, path: str, encoding: Optional[str] = 'utf8',
                        cwd: str = '/') -> Union[str, bytes]:
        """Read a whole file; bytes when encoding is None."""

    @abstractmethod
    async def write_file(self, path: str, content: Union[str, bytes],
                         cwd: str = '/') -> None:
        """Create or replace a file."""

    @abstractmethod
    async def stat(self, path: str, cwd: str = '/') -> Stat:
        """Describe a file or directory."""

    @abstractmethod
    async def readdir(self, path: str, cwd: str = '/') -> List[str]:
        """List entry names of a directory."""

    @abstractmethod
    async def mkdir(self, path: str, cwd: str = '/', parents: bool = False) -> None:
        """Create a directory; with parents, create missing ancestors too."""

    @abstractmethod
    async def rmdir(self, path: str, cwd: str = '/') -> None:
        """Remove an empty directory."""

    @abstractmethod
    async def unlink(self, path: str, cwd: str = '/') -> None:
        """Remove a regular file."""

    @abstractmethod
    async def rename(self, source: str, dest: str, cwd: str = '/') -> None:
        """Move a file or directory to an exact new path."""

    @abstractmethod
    async def utimes(self, path: str, atime: float, mtime: float,
                     cwd: str = '/') -> None:
        """Set access and modification times."""

    async def exists(self, path: str, cwd: str = '/') -> bool:
        try:
            await self.stat(path, cwd)
        except FileSystemException:
            return False
        return True


class VirtualFileSystem(FileSystemInterface):
    """
    In-memory file system.

    Example:
        >>> vfs = VirtualFileSystem()
        >>> vfs.initialize()
        >>> await vfs.write_file('/tmp/test.txt', 'Hello, World!')
        >>> await vfs.read_file('/tmp/test.txt')
        'Hello, World!'
    """

    ROOT_INO = 1

    def __init__(
        self,
        max_file_size: int = 10 * 1024 * 1024,
        standard_dirs: Optional[List[str]] = None
    ):
        self._logger = get_logger('vfs')
        self._inodes: dict[int, Inode] = {}
        self._next_ino = 2  # 1 is reserved for root
        self._max_file_size = max_file_size
        self._standard_dirs = list(standard_dirs or [])
        self._initialized = False

    def initialize(self) -> None:
        """Create the root directory and the standard directories."""
        if self._initialized:
            return

        self._inodes[self.ROOT_INO] = Inode(
            ino=self.ROOT_INO,
            file_type=FileType.DIRECTORY,
            mode=0o755
        )

        for path in self._standard_dirs:
            self._make_directory(PathResolver.resolve(path), parents=True)

        self._initialized = True
        self._logger.info(
            "Virtual filesystem initialized",
            context={'dirs': len(self._standard_dirs)}
        )

    @property
    def max_file_size(self) -> int:
        return self._max_file_size

    def _generate_ino(self) -> int:
        ino = self._next_ino
        self._next_ino += 1
        return ino

    def _lookup(self, resolved: str) -> Optional[Inode]:
        """Walk an absolute normalized path; None if any part is missing."""
        current = self._inodes.get(self.ROOT_INO)

        for component in (c for c in resolved.split('/') if c):
            if current is None or not current.is_directory:
                return None
            child_ino = current.get_entry(component)
            current = self._inodes.get(child_ino) if child_ino is not None else None

        return current

    def _require(self, resolved: str) -> Inode:
        inode = self._lookup(resolved)
        if inode is None:
            raise FileNotFoundError(resolved)
        return inode

    def _parent_of(self, resolved: str) -> tuple[Inode, str]:
        """Get the parent directory inode and the base name of a path."""
        parent_path, name = PathResolver.split(resolved)
        parent = self._lookup(parent_path)

        if parent is None:
            raise FileNotFoundError(parent_path)
        if not parent.is_directory:
            raise PathResolutionError(resolved, component=parent_path)

        return parent, name

    def _make_directory(self, resolved: str, parents: bool = False) -> Inode:
        existing = self._lookup(resolved)
        if existing is not None:
            if parents and existing.is_directory:
                return existing
            raise FileExistsError(resolved)

        if parents and resolved != '/':
            self._make_directory(PathResolver.dirname(resolved), parents=True)

        parent, name = self._parent_of(resolved)
        inode = Inode(
            ino=self._generate_ino(),
            file_type=FileType.DIRECTORY,
            mode=0o755
        )
        self._inodes[inode.ino] = inode
        parent.add_entry(name, inode.ino)

        self._logger.debug("Created directory", context={'path': resolved})
        return inode

    def _is_ancestor(self, ancestor: Inode, inode: Inode) -> bool:
        if ancestor is inode:
            return True
        if not ancestor.is_directory:
            return False
        return any(
            self._is_ancestor(self._inodes[child], inode)
            for _, child in ancestor.list_entries()
        )

    async def read_file(
        self,
        path: str,
        encoding: Optional[str] = 'utf8',
        cwd: str = '/'
    ) -> Union[str, bytes]:
        await asyncio.sleep(0)
        resolved = PathResolver.resolve(path, cwd)
        inode = self._require(resolved)

        if inode.is_directory:
            raise NotAFileError(resolved)

        data = inode.read()
        return data.decode(encoding) if encoding else data

    async def write_file(
        self,
        path: str,
        content: Union[str, bytes],
        cwd: str = '/'
    ) -> None:
        await asyncio.sleep(0)
        resolved = PathResolver.resolve(path, cwd)
        data = content.encode('utf-8') if isinstance(content, str) else bytes(content)

        if len(data) > self._max_file_size:
            raise DiskFullError(
                message="File too large",
                path=resolved,
                requested=len(data),
                available=self._max_file_size
            )

        inode = self._lookup(resolved)
        if inode is None:
            parent, name = self._parent_of(resolved)
            inode = Inode(ino=self._generate_ino(), file_type=FileType.REGULAR)
            self._inodes[inode.ino] = inode
            parent.add_entry(name, inode.ino)
            self._logger.debug("Created file", context={'path': resolved})
        elif inode.is_directory:
            raise NotAFileError(resolved)

        inode.write(data)

    async def stat(self, path: str, cwd: str = '/') -> Stat:
        await asyncio.sleep(0)
        return Stat.from_inode(self._require(PathResolver.resolve(path, cwd)))

    async def readdir(self, path: str, cwd: str = '/') -> List[str]:
        await asyncio.sleep(0)
        resolved = PathResolver.resolve(path, cwd)
        inode = self._require(resolved)

        if not inode.is_directory:
            raise NotADirectoryError(resolved)

        return [name for name, _ in inode.list_entries()]

    async def mkdir(self, path: str, cwd: str = '/', parents: bool = False) -> None:
        await asyncio.sleep(0)
        self._make_directory(PathResolver.resolve(path, cwd), parents=parents)

    async def rmdir(self, path: str, cwd: str = '/') -> None:
        await asyncio.sleep(0)
        resolved = PathResolver.resolve(path, cwd)

        if resolved == '/':
            raise FileSystemException("Device or resource busy", path='/')

        inode = self._require(resolved)
        if not inode.is_directory:
            raise NotADirectoryError(resolved)
        if inode.list_entries():
            raise DirectoryNotEmptyError(resolved)

        parent, name = self._parent_of(resolved)
        parent.remove_entry(name)
        del self._inodes[inode.ino]

        self._logger.debug("Removed directory", context={'path': resolved})

    async def unlink(self, path: str, cwd: str = '/') -> None:
        await asyncio.sleep(0)
        resolved = PathResolver.resolve(path, cwd)
        inode = self._require(resolved)

        if inode.is_directory:
            raise NotAFileError(resolved)

        parent, name = self._parent_of(resolved)
        parent.remove_entry(name)
        del self._inodes[inode.ino]

        self._logger.debug("Deleted file", context={'path': resolved})

    async def rename(self, source: str, dest: str, cwd: str = '/') -> None:
        await asyncio.sleep(0)
        src_resolved = PathResolver.resolve(source, cwd)
        dst_resolved = PathResolver.resolve(dest, cwd)

        if src_resolved == '/':
            raise FileSystemException("Device or resource busy", path='/')

        inode = self._require(src_resolved)
        if src_resolved == dst_resolved:
            return

        dst_parent, dst_name = self._parent_of(dst_resolved)
        if self._is_ancestor(inode, dst_parent):
            raise FileSystemException("Invalid argument", path=dst_resolved)

        existing = self._lookup(dst_resolved)
        if existing is not None:
            if existing.is_directory:
                raise FileExistsError(dst_resolved)
            if inode.is_directory:
                raise NotADirectoryError(dst_resolved)
            dst_parent.remove_entry(dst_name)
            del self._inodes[existing.ino]

        src_parent, src_name = self._parent_of(src_resolved)
        src_parent.remove_entry(src_name)
        dst_parent.add_entry(dst_name, inode.ino)

        self._logger.debug(
            "Renamed",
            context={'from': src_resolved, 'to': dst_resolved}
        )

    async def utimes(self, path: str, atime: float, mtime: float, cwd: str = '/') -> None:
        await asyncio.sleep(0)
        self._require(PathResolver.resolve(path, cwd)).touch(atime, mtime)
