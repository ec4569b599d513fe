#!/usr/bin/env python3
"""
Shell Driver Tests

Covers line evaluation against the terminal, history, scripts, Ctrl-C
handling and the interactive loop.

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
import unittest
from unittest import mock

from qrx.core.config_loader import Config
from qrx.shell.output import BufferSink
from qrx.shell.registry import ShellCommand
from qrx.shell.shell import Shell, STATUS_INTERRUPTED


class HangCommand(ShellCommand):
    """Waits for an event and has no cancel hook."""

    name = "hang"

    def __init__(self):
        self.release = asyncio.Event()

    async def run(self, context, args, stdin=None):
        await self.release.wait()
        context.writeln("late output")
        return 0


class ShellTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.terminal = BufferSink()
        self.shell = Shell(config=Config(), terminal=self.terminal)

    @property
    def output(self):
        return self.terminal.getvalue()


class TestRunLine(ShellTestCase):
    """Test single lines."""

    async def test_output_goes_to_terminal(self):
        status = await self.shell.run_line("echo hello | cat")
        self.assertEqual(status, 0)
        self.assertEqual(self.output, "hello\n")

    async def test_blank_line_keeps_status(self):
        await self.shell.run_line("false")
        self.assertEqual(await self.shell.run_line("   "), 1)
        self.assertEqual(self.output, "")

    async def test_prompt_follows_cwd(self):
        self.assertEqual(self.shell.prompt, "user@host:/$ ")
        await self.shell.run_line("cd /tmp")
        self.assertEqual(self.shell.prompt, "user@host:/tmp$ ")

    async def test_state_persists_between_lines(self):
        await self.shell.run_line("GREETING=hi")
        await self.shell.run_line("echo $GREETING > /tmp/g")
        await self.shell.run_line("cat /tmp/g")
        self.assertEqual(self.output, "hi\n")

    async def test_deep_nesting_is_a_parse_error(self):
        status = await self.shell.run_line("(" * 300 + "echo a" + ")" * 300)
        self.assertEqual(status, 2)
        self.assertEqual(self.output, "parse error: nesting too deep at column 65\n")

        self.assertEqual(await self.shell.run_line("echo still here"), 0)
        self.assertTrue(self.output.endswith("still here\n"))


class TestHistory(ShellTestCase):
    """Test command history."""

    async def test_history_includes_current_line(self):
        await self.shell.run_line("echo a")
        await self.shell.run_line("history")
        self.assertEqual(self.output, "a\n   1  echo a\n   2  history\n")

    async def test_blank_lines_are_not_recorded(self):
        await self.shell.run_line("")
        self.assertEqual(self.shell.session.history, [])

    async def test_history_clear(self):
        await self.shell.run_line("echo a")
        await self.shell.run_line("history -c")
        self.assertEqual(self.shell.session.history, [])
        self.assertTrue(self.output.endswith("Command history cleared.\n"))

    async def test_history_size_limit(self):
        config = Config()
        config.shell.history_size = 2
        shell = Shell(config=config, terminal=BufferSink())

        for line in ("true", "false", "echo x"):
            await shell.run_line(line)

        self.assertEqual(shell.session.history, ["false", "echo x"])


class TestScripts(ShellTestCase):
    """Test run_script."""

    async def test_skips_comments_and_blank_lines(self):
        status = await self.shell.run_script("echo a\n# note\n\n  echo b\n")
        self.assertEqual(status, 0)
        self.assertEqual(self.output, "a\nb\n")
        self.assertEqual(self.shell.session.history, [])

    async def test_parse_error_does_not_stop_script(self):
        status = await self.shell.run_script("echo a; ;\necho b\n")
        self.assertEqual(
            self.output,
            "parse error: unexpected token ';' at column 9\nb\n"
        )
        self.assertEqual(status, 0)

    async def test_exit_stops_script(self):
        status = await self.shell.run_script("echo a\nexit 3\necho b\n")
        self.assertEqual(status, 3)
        self.assertEqual(self.output, "a\n")
        self.assertTrue(self.shell.session.exit_requested)

    async def test_wait_for_jobs(self):
        await self.shell.run_script("echo done > /tmp/bg &\n")
        await self.shell.wait_for_jobs()
        self.assertEqual(await self.shell.fs.read_file('/tmp/bg'), "done\n")
        self.assertEqual(self.output, "[1]\n")


class TestBackgroundJobs(ShellTestCase):
    """Test background statements."""

    async def test_background_returns_immediately(self):
        status = await asyncio.wait_for(self.shell.run_line("sleep 5 &"), timeout=1)
        self.assertEqual(status, 0)
        self.assertEqual(self.output, "[1]\n")
        self.assertEqual(len(self.shell.executor.jobs), 1)


class TestCancel(ShellTestCase):
    """Test Ctrl-C handling."""

    async def test_cooperative_cancel(self):
        """sleep has a cancel hook: it ends early with status 130."""
        line = asyncio.create_task(self.shell.run_line("sleep 10"))
        await asyncio.sleep(0.05)

        self.assertTrue(self.shell.cancel_current())
        status = await asyncio.wait_for(line, timeout=1)

        self.assertEqual(status, STATUS_INTERRUPTED)
        self.assertEqual(self.output, "")
        self.assertIsNone(self.shell.session.current_cancellable)

    async def test_cancel_reaches_sleep_inside_sequence(self):
        line = asyncio.create_task(self.shell.run_line("sleep 10; echo $?"))
        await asyncio.sleep(0.05)

        self.shell.cancel_current()
        await asyncio.wait_for(line, timeout=1)

        self.assertEqual(self.output, "130\n")

    async def test_non_cooperative_cancel_abandons_line(self):
        hang = HangCommand()
        self.shell.registry.register(hang)

        line = asyncio.create_task(self.shell.run_line("hang; echo after"))
        await asyncio.sleep(0.05)

        self.assertFalse(self.shell.cancel_current())
        status = await asyncio.wait_for(line, timeout=1)

        self.assertEqual(status, STATUS_INTERRUPTED)
        self.assertEqual(self.shell.session.last_exit_status, STATUS_INTERRUPTED)
        self.assertEqual(self.output, "^C\n")
        self.assertIsNone(self.shell.session.current_cancellable)

        # The abandoned statement finishes later without reaching the terminal.
        hang.release.set()
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertEqual(self.output, "^C\n")

    async def test_abandoned_line_does_not_take_cancel_slot(self):
        hang = HangCommand()
        self.shell.registry.register(hang)

        line = asyncio.create_task(self.shell.run_line("hang; sleep 10"))
        await asyncio.sleep(0.05)
        self.assertFalse(self.shell.cancel_current())
        await asyncio.wait_for(line, timeout=1)

        # The abandoned line moves on to sleep while the prompt is idle.
        hang.release.set()
        await asyncio.sleep(0.05)
        self.assertIsNone(self.shell.session.current_cancellable)

        self.assertFalse(self.shell.cancel_current())
        self.assertEqual(self.output, "^C\n^C\n")

    async def test_cancel_stops_override_script(self):
        await self.shell.fs.write_file('/sys/cmd/slow', 'sleep 10\necho finished\n')

        line = asyncio.create_task(self.shell.run_line("slow; echo $?"))
        await asyncio.sleep(0.05)

        handle = self.shell.session.current_cancellable
        self.assertEqual(handle.name, 'sleep')
        self.assertEqual(handle.parent.name, 'slow')

        self.assertTrue(self.shell.cancel_current())
        await asyncio.wait_for(line, timeout=1)

        self.assertEqual(self.output, "130\n")
        self.assertIsNone(self.shell.session.current_cancellable)

    async def test_cancel_when_idle(self):
        self.assertFalse(self.shell.cancel_current())
        self.assertEqual(self.output, "^C\n")


class TestInteractiveLoop(ShellTestCase):
    """Test the REPL with input() patched."""

    async def test_runs_until_exit(self):
        with mock.patch('builtins.input', side_effect=["echo hi", "exit 4", "echo never"]):
            status = await self.shell.run()

        self.assertEqual(status, 4)
        self.assertTrue(self.output.startswith("Welcome to the QRx shell."))
        self.assertIn("hi\n", self.output)
        self.assertNotIn("never", self.output)
        self.assertEqual(self.shell.session.history, ["echo hi", "exit 4"])

    async def test_stops_at_end_of_input(self):
        with mock.patch('builtins.input', side_effect=["false", EOFError]):
            status = await self.shell.run()

        self.assertEqual(status, 1)
        self.assertTrue(self.output.endswith("\n"))


if __name__ == '__main__':
    unittest.main()
