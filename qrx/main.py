#!/usr/bin/env python3
"""
QRx - A small command shell over a virtual filesystem

This is the main entry point for QRx.

Usage:
    qrx                      Start the interactive shell
    qrx -c 'echo hi | cat'   Run one line and exit
    qrx script.qrx           Run a script file from the host and exit
    qrx --config PATH ...    Use a configuration file

Author: YSNRFD
Version: 1.0.0
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Optional, List

from qrx import __version__
from qrx.core.bootloader import Bootloader
from qrx.shell.shell import Shell


DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='qrx',
        description='A small command shell over a virtual filesystem.'
    )
    parser.add_argument(
        '--config',
        default=DEFAULT_CONFIG,
        help='path to a JSON configuration file'
    )
    parser.add_argument(
        '-c',
        dest='command',
        metavar='LINE',
        help='run one line and exit'
    )
    parser.add_argument(
        'script',
        nargs='?',
        help='host file with one statement per line'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


async def run_session(shell: Shell, command: Optional[str], script: Optional[str]) -> int:
    """
    Run one line, a script, or the interactive loop.

    Background jobs started by a line or script are waited for before
    returning, so their redirected output is not lost.

    Returns:
        Exit status of the last statement
    """
    if command is not None:
        status = await shell.run_line(command, record_history=False)
    elif script is not None:
        status = await shell.run_script(Path(script).read_text(encoding='utf-8'))
    else:
        return await shell.run()

    await shell.wait_for_jobs()
    return status


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for QRx.

    Boot sequence:
    1. Load configuration
    2. Initialize logging
    3. Build filesystem and commands
    4. Construct the shell and activate plugins
    5. Run
    6. Shutdown
    """
    args = build_parser().parse_args(argv)

    if args.command is not None and args.script is not None:
        print("qrx: -c and a script file cannot be combined", file=sys.stderr)
        return 2

    bootloader = Bootloader(args.config)
    result = bootloader.boot()

    if not result.success:
        print(f"Boot failed at stage {result.stage.name}", file=sys.stderr)
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    shell = bootloader.get_shell()

    try:
        status = asyncio.run(run_session(shell, args.command, args.script))
    except OSError as e:
        print(f"qrx: {e}", file=sys.stderr)
        status = 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        status = 130
    finally:
        bootloader.shutdown()

    return status


if __name__ == '__main__':
    sys.exit(main())
