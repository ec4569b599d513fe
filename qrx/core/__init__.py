"""
QRx Core Module

Session-wide components:
- Configuration Loader
- Session state
- Bootloader (import from qrx.core.bootloader)
"""

from .config_loader import ConfigLoader, Config, get_config
from .session import Session

__all__ = [
    'ConfigLoader',
    'Config',
    'get_config',
    'Session',
]
