#!/usr/bin/env python3
"""
Configuration Tests

Author: YSNRFD
Version: 1.0.0
"""

import json
import os
import tempfile
import unittest

from qrx.core.config_loader import Config, ConfigLoader, get_config
from qrx.exceptions import BootFailureError, ConfigValidationError


class TestConfig(unittest.TestCase):
    """Test the configuration system."""

    def setUp(self):
        self.loader = ConfigLoader()
        self.loader.reset()
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.loader.reset()
        self.tmpdir.cleanup()

    def write(self, content):
        path = os.path.join(self.tmpdir.name, 'config.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content if isinstance(content, str) else json.dumps(content))
        return path

    def test_default_config(self):
        """Test default configuration values."""
        config = Config()

        self.assertEqual(config.shell.override_dir, "/sys/cmd")
        self.assertEqual(config.shell.history_size, 1000)
        self.assertEqual(config.shell.job_ack_format, "[{job_id}]")
        self.assertEqual(config.filesystem.max_file_size, 10 * 1024 * 1024)
        self.assertEqual(config.logging.level, "WARNING")
        self.assertFalse(config.plugins.enabled)

    def test_singleton(self):
        self.assertIs(ConfigLoader(), self.loader)
        self.assertIs(get_config(), self.loader.config)

    def test_partial_file_keeps_defaults(self):
        config = self.loader.load(self.write({
            "shell": {"prompt_user": "alice", "unknown_key": 1},
            "logging": {"level": "DEBUG"}
        }))

        self.assertTrue(self.loader.loaded)
        self.assertEqual(config.shell.prompt_user, "alice")
        self.assertEqual(config.shell.prompt_host, "host")
        self.assertEqual(config.logging.level, "DEBUG")
        self.assertEqual(config.filesystem.standard_dirs, Config().filesystem.standard_dirs)

    def test_missing_file(self):
        with self.assertRaises(BootFailureError):
            self.loader.load(os.path.join(self.tmpdir.name, 'absent.json'))

    def test_malformed_json(self):
        with self.assertRaises(BootFailureError) as cm:
            self.loader.load(self.write("{not json"))
        self.assertEqual(cm.exception.stage, "config")

    def test_section_must_be_object(self):
        with self.assertRaises(BootFailureError):
            self.loader.load(self.write({"shell": "oops"}))

    def test_get(self):
        self.assertEqual(self.loader.get('shell.override_dir'), '/sys/cmd')
        self.assertEqual(self.loader.get('shell.nope', 5), 5)

    def test_set(self):
        self.loader.set('shell.history_size', 10)
        self.assertEqual(get_config().shell.history_size, 10)

        with self.assertRaises(ConfigValidationError):
            self.loader.set('shell.nope', 1)
        with self.assertRaises(ConfigValidationError):
            self.loader.set('nope.key', 1)

    def test_to_dict(self):
        data = self.loader.to_dict()
        self.assertEqual(set(data), {'shell', 'filesystem', 'logging', 'plugins'})
        self.assertEqual(data['shell']['prompt_user'], 'user')

    def test_shipped_config_matches_defaults(self):
        import qrx
        path = os.path.join(os.path.dirname(qrx.__file__), 'config.json')
        self.assertEqual(self.loader.load(path), Config())


if __name__ == '__main__':
    unittest.main()
