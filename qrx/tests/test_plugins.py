#!/usr/bin/env python3
"""
Plugin and Bootloader Tests

Author: YSNRFD
Version: 1.0.0
"""

import json
import os
import tempfile
import textwrap
import unittest

from qrx.core.bootloader import Bootloader, BootStage, boot_shell
from qrx.core.config_loader import Config, ConfigLoader
from qrx.exceptions import BootFailureError, PluginLoadError
from qrx.logger import Logger
from qrx.plugins import PluginLoader, PluginState
from qrx.shell.output import BufferSink
from qrx.shell.shell import Shell


GREET_PLUGIN = textwrap.dedent('''
    from qrx.plugins import PluginInterface, PluginInfo
    from qrx.shell.registry import ShellCommand


    class GreetCommand(ShellCommand):
        name = "greet"
        description = "Print a greeting"

        async def run(self, context, args, stdin=None):
            context.writeln("hello " + " ".join(args))


    class GreetPlugin(PluginInterface):
        def __init__(self):
            self._info = PluginInfo(
                name="greet",
                version="1.0.0",
                description="Adds a greet command",
                author="Tests"
            )
            self.shell = None
            self.stopped = False

        @property
        def info(self):
            return self._info

        def initialize(self, shell):
            self.shell = shell

        def shutdown(self):
            self.stopped = True

        def get_commands(self):
            return {"greet": GreetCommand(), "hi": GreetCommand()}
''')

BROKEN_PLUGIN = "raise RuntimeError('cannot import')\n"

EMPTY_PLUGIN = "VALUE = 1\n"


class PluginTestCase(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.plugin_dir = self.tmpdir.name

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, name, content, directory=None):
        path = os.path.join(directory or self.plugin_dir, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path


class TestPluginLoader(PluginTestCase):
    """Test plugin discovery, loading and lifecycle."""

    def setUp(self):
        super().setUp()
        self.loader = PluginLoader()
        self.shell = Shell(config=Config(), terminal=BufferSink())

    def test_discover_plugins(self):
        self.write('b.py', EMPTY_PLUGIN)
        self.write('a.py', EMPTY_PLUGIN)
        self.write('_private.py', EMPTY_PLUGIN)
        self.write('notes.txt', '')

        found = [os.path.basename(p) for p in self.loader.discover_plugins(self.plugin_dir)]
        self.assertEqual(found, ['a.py', 'b.py'])

    def test_discover_missing_directory(self):
        self.assertEqual(self.loader.discover_plugins(os.path.join(self.plugin_dir, 'no')), [])

    def test_lifecycle(self):
        name = self.loader.load_plugin(self.write('greet.py', GREET_PLUGIN))
        self.assertEqual(name, 'greet')
        self.assertEqual(self.loader.list_plugins()[0]['state'], 'loaded')

        self.assertTrue(self.loader.activate_plugin(name, self.shell))
        plugin = self.loader.get_plugin(name)
        self.assertIs(plugin.shell, self.shell)
        self.assertEqual(plugin.info.state, PluginState.ACTIVE)
        self.assertIn('greet', self.shell.registry)
        self.assertIn('hi', self.shell.registry)
        self.assertEqual(self.loader.list_plugins()[0]['commands'], ['greet', 'hi'])

        self.assertTrue(self.loader.deactivate_plugin(name))
        self.assertTrue(plugin.stopped)
        self.assertNotIn('greet', self.shell.registry)
        self.assertEqual(plugin.info.state, PluginState.LOADED)

        self.assertTrue(self.loader.unload_plugin(name))
        self.assertIsNone(self.loader.get_plugin(name))
        self.assertEqual(self.loader.list_plugins(), [])

    def test_unload_deactivates(self):
        name = self.loader.load_plugin(self.write('greet.py', GREET_PLUGIN))
        self.loader.activate_plugin(name, self.shell)

        self.loader.unload_all()
        self.assertNotIn('greet', self.shell.registry)

    def test_file_without_plugin(self):
        with self.assertRaises(PluginLoadError):
            self.loader.load_plugin(self.write('empty.py', EMPTY_PLUGIN))

    def test_failing_import(self):
        with self.assertRaises(PluginLoadError) as cm:
            self.loader.load_plugin(self.write('broken.py', BROKEN_PLUGIN))
        self.assertIn("cannot import", cm.exception.message)

    def test_duplicate_name(self):
        self.loader.load_plugin(self.write('greet.py', GREET_PLUGIN))
        with self.assertRaises(PluginLoadError):
            self.loader.load_plugin(self.write('greet_again.py', GREET_PLUGIN))

    def test_unknown_plugin(self):
        self.assertFalse(self.loader.activate_plugin('nope', self.shell))
        self.assertFalse(self.loader.deactivate_plugin('nope'))
        self.assertFalse(self.loader.unload_plugin('nope'))


class TestBootloader(PluginTestCase):
    """Test the boot sequence."""

    def setUp(self):
        super().setUp()
        ConfigLoader().reset()
        Logger.shutdown()

    def tearDown(self):
        ConfigLoader().reset()
        Logger.shutdown()
        super().tearDown()

    def config_file(self, data):
        data.setdefault('logging', {'console_output': False})
        return self.write('config.json', json.dumps(data))

    def test_boot_without_config_file(self):
        """A missing configuration file falls back to defaults."""
        terminal = BufferSink()
        result, shell, bootloader = boot_shell(
            os.path.join(self.plugin_dir, 'absent.json'),
            terminal=terminal
        )

        self.assertTrue(result.success)
        self.assertEqual(result.stage, BootStage.COMPLETE)
        self.assertIs(shell.terminal, terminal)
        self.assertIn('echo', shell.registry)
        self.assertTrue(shell.fs.max_file_size > 0)
        bootloader.shutdown()

    def test_boot_applies_config(self):
        bootloader = Bootloader(self.config_file({
            'shell': {'prompt_user': 'alice', 'prompt_host': 'box'},
            'filesystem': {'standard_dirs': ['/data']}
        }), terminal=BufferSink())

        self.assertTrue(bootloader.boot().success)
        shell = bootloader.get_shell()
        self.assertEqual(shell.prompt, 'alice@box:/$ ')

    def test_malformed_config_fails_boot(self):
        result = Bootloader(self.write('config.json', '{oops')).boot()

        self.assertFalse(result.success)
        self.assertEqual(result.stage, BootStage.CONFIG_LOAD)
        self.assertIsInstance(result.error, BootFailureError)

    def test_plugins_are_activated(self):
        plugins = os.path.join(self.plugin_dir, 'plugins')
        os.mkdir(plugins)
        self.write('greet.py', GREET_PLUGIN, plugins)
        self.write('broken.py', BROKEN_PLUGIN, plugins)

        bootloader = Bootloader(self.config_file({
            'plugins': {'enabled': True, 'directory': plugins}
        }), terminal=BufferSink())
        result = bootloader.boot()

        self.assertTrue(result.success)
        self.assertIn('greet', bootloader.get_shell().registry)
        names = [p['name'] for p in bootloader.get_plugin_loader().list_plugins()]
        self.assertEqual(names, ['greet'])

        bootloader.shutdown()
        self.assertNotIn('greet', bootloader.get_shell().registry)

    def test_autoload_selects_plugins(self):
        self.write('greet.py', GREET_PLUGIN)

        bootloader = Bootloader(self.config_file({
            'plugins': {
                'enabled': True,
                'directory': self.plugin_dir,
                'autoload': ['other']
            }
        }), terminal=BufferSink())

        self.assertTrue(bootloader.boot().success)
        self.assertNotIn('greet', bootloader.get_shell().registry)

    def test_plugins_disabled(self):
        self.write('greet.py', GREET_PLUGIN)

        bootloader = Bootloader(self.config_file({
            'plugins': {'enabled': False, 'directory': self.plugin_dir}
        }), terminal=BufferSink())

        self.assertTrue(bootloader.boot().success)
        self.assertEqual(bootloader.get_plugin_loader().list_plugins(), [])


if __name__ == '__main__':
    unittest.main()
