#!/usr/bin/env python3
"""
Logger Tests

Author: YSNRFD
Version: 1.0.0
"""

import logging
import unittest

from qrx.logger import Logger, LogLevel, LogFormatter, get_logger


class TestLogger(unittest.TestCase):
    """Test the logging system."""

    def setUp(self):
        Logger.shutdown()
        Logger.initialize(level=LogLevel.DEBUG, console_output=False)

    def tearDown(self):
        Logger.shutdown()

    def test_logger_per_subsystem(self):
        """Same subsystem, same instance."""
        self.assertIs(Logger('test1'), Logger('test1'))
        self.assertIs(get_logger('test1'), Logger('test1'))
        self.assertIsNot(Logger('test1'), Logger('test2'))

    def test_log_levels(self):
        self.assertTrue(LogLevel.ERROR > LogLevel.INFO)
        self.assertEqual(LogLevel.from_name('debug'), LogLevel.DEBUG)
        self.assertEqual(LogLevel.from_name('bogus'), LogLevel.WARNING)
        self.assertEqual(LogLevel.from_name('bogus', LogLevel.INFO), LogLevel.INFO)

    def test_session_buffer(self):
        get_logger('buffer_test').info("hello", context={'key': 1})

        [entry] = Logger.get_session_logs(subsystem='buffer_test')
        self.assertEqual(entry['message'], "hello")
        self.assertEqual(entry['level'], "INFO")
        self.assertEqual(entry['context'], {'key': 1})

    def test_level_filtering(self):
        Logger.shutdown()
        Logger.initialize(level=LogLevel.ERROR, console_output=False)

        log = get_logger('filter_test')
        log.warning("dropped")
        log.error("kept")

        messages = [e['message'] for e in Logger.get_session_logs(subsystem='filter_test')]
        self.assertEqual(messages, ["kept"])

    def test_shutdown_clears_buffer(self):
        get_logger('shutdown_test').info("x")
        Logger.shutdown()
        self.assertEqual(Logger.get_session_logs(), [])

    def test_formatter(self):
        record = logging.LogRecord(
            'qrx.executor', logging.WARNING, __file__, 1,
            "Command failed", None, None
        )
        record.subsystem = 'executor'
        record.context = {'command': 'cat'}

        line = LogFormatter(use_colors=False).format(record)
        self.assertIn("WARNING", line)
        self.assertIn("[executor] Command failed {command=cat}", line)

    def test_executor_logs_command_failures(self):
        import asyncio
        from qrx.core.config_loader import Config
        from qrx.shell.output import BufferSink
        from qrx.shell.shell import Shell

        shell = Shell(config=Config(), terminal=BufferSink())
        asyncio.run(shell.run_line("cat /nope | nosuch"))

        messages = [e['message'] for e in Logger.get_session_logs(subsystem='executor')]
        self.assertIn("Command not found", messages)


if __name__ == '__main__':
    unittest.main()
