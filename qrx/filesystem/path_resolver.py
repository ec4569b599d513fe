"""
Path Resolver Module

String-only path arithmetic shared by the virtual file system, the
executor and the commands. Nothing here looks at the inode tree.

Rules:
- '/' separates components and repeated slashes collapse
- '.' is dropped and '..' removes the component before it
- '..' at the root stays at the root
- an empty path means the current directory

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import List, Tuple


ROOT = '/'
SEPARATOR = '/'


@dataclass
class ParsedPath:
    """A path split on '/', without empty and '.' components."""
    is_absolute: bool
    components: List[str]

    def __str__(self) -> str:
        body = SEPARATOR.join(self.components)
        if self.is_absolute:
            return ROOT + body
        return body or '.'


def _collapse(components: List[str]) -> List[str]:
    stack: List[str] = []
    for component in components:
        if component != '..':
            stack.append(component)
        elif stack:
            stack.pop()
    return stack


class PathResolver:
    """
    Static helpers for shell paths.

    Example:
        >>> PathResolver.resolve('../home/user', '/tmp')
        '/home/user'
        >>> PathResolver.split('/tmp/notes.txt')
        ('/tmp', 'notes.txt')
    """

    @staticmethod
    def parse(path: str) -> ParsedPath:
        return ParsedPath(
            is_absolute=path.startswith(ROOT),
            components=[c for c in path.split(SEPARATOR) if c not in ('', '.')]
        )

    @staticmethod
    def normalize(path: str) -> str:
        """Collapse '.', '..' and repeated slashes."""
        parsed = PathResolver.parse(path)
        return str(ParsedPath(parsed.is_absolute, _collapse(parsed.components)))

    @staticmethod
    def join(*paths: str) -> str:
        """
        Join path pieces and normalize the result.

        A piece starting with '/' restarts the path from the root.
        """
        if not paths:
            return '.'

        start = max(
            (index for index, piece in enumerate(paths) if piece.startswith(ROOT)),
            default=0
        )
        return PathResolver.normalize(SEPARATOR.join(paths[start:]))

    @staticmethod
    def resolve(path: str, cwd: str = ROOT) -> str:
        """
        Absolute form of `path` as seen from `cwd`.

        cwd counts as absolute even without its leading slash.
        """
        if PathResolver.is_absolute(path):
            return PathResolver.normalize(path)
        return PathResolver.normalize(ROOT + cwd + SEPARATOR + path)

    @staticmethod
    def split(path: str) -> Tuple[str, str]:
        """
        Split the normalized path into (dirname, basename).

        The root splits into ('/', '/') and a bare name into ('.', name).
        """
        normalized = PathResolver.normalize(path)
        if normalized == ROOT:
            return ROOT, ROOT

        head, separator, tail = normalized.rpartition(SEPARATOR)
        if not separator:
            return '.', tail
        return head or ROOT, tail

    @staticmethod
    def dirname(path: str) -> str:
        return PathResolver.split(path)[0]

    @staticmethod
    def basename(path: str) -> str:
        return PathResolver.split(path)[1]

    @staticmethod
    def is_absolute(path: str) -> bool:
        return path.startswith(ROOT)
