#!/usr/bin/env python3
"""
Path Resolver Tests

Author: YSNRFD
Version: 1.0.0
"""

import unittest

from qrx.filesystem.path_resolver import PathResolver


class TestPathResolver(unittest.TestCase):
    """Test path arithmetic."""

    def test_normalize(self):
        self.assertEqual(PathResolver.normalize('/a/./b/../c'), '/a/c')
        self.assertEqual(PathResolver.normalize('//a//b/'), '/a/b')
        self.assertEqual(PathResolver.normalize('a/..'), '.')
        self.assertEqual(PathResolver.normalize('/'), '/')

    def test_parent_of_root_is_root(self):
        """'..' never climbs above the root."""
        self.assertEqual(PathResolver.normalize('/../../x'), '/x')
        self.assertEqual(PathResolver.resolve('../..', '/'), '/')

    def test_resolve_relative(self):
        self.assertEqual(PathResolver.resolve('x', '/tmp'), '/tmp/x')
        self.assertEqual(PathResolver.resolve('../home', '/tmp'), '/home')
        self.assertEqual(PathResolver.resolve('.', '/tmp'), '/tmp')
        self.assertEqual(PathResolver.resolve('x', 'tmp'), '/tmp/x')

    def test_resolve_absolute_ignores_cwd(self):
        self.assertEqual(PathResolver.resolve('/etc/./x', '/tmp'), '/etc/x')

    def test_resolve_empty_is_cwd(self):
        self.assertEqual(PathResolver.resolve('', '/tmp'), '/tmp')

    def test_join(self):
        """A later absolute component discards the earlier ones."""
        self.assertEqual(PathResolver.join('/a', 'b', 'c'), '/a/b/c')
        self.assertEqual(PathResolver.join('/a/', 'b'), '/a/b')
        self.assertEqual(PathResolver.join('/a', '/b'), '/b')

    def test_dirname_and_basename(self):
        self.assertEqual(PathResolver.split('/a/b/c'), ('/a/b', 'c'))
        self.assertEqual(PathResolver.split('/a'), ('/', 'a'))
        self.assertEqual(PathResolver.split('/'), ('/', '/'))
        self.assertEqual(PathResolver.split('name'), ('.', 'name'))

    def test_parse(self):
        parsed = PathResolver.parse('/a/./b')
        self.assertTrue(parsed.is_absolute)
        self.assertEqual(parsed.components, ['a', 'b'])
        self.assertEqual(str(parsed), '/a/b')


if __name__ == '__main__':
    unittest.main()
