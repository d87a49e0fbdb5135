"""Terminal styling and log-file lines for scan output.

Per-file progress lines are coloured by the file's risk tier; card
findings, unreadable files and headings each have their own style. Log
file lines are always plain text.
"""

import sys
from datetime import datetime
from typing import Optional

from panscan.models import RiskTier

_RESET = '\033[0m'

_STYLES = {
    'header': '\033[1;36m',
    'dim': '\033[2m',
    'finding': '\033[33m',
    'error': '\033[1;31m',
    'ok': '\033[32m',
}

_TIER_STYLES = {
    RiskTier.HIGH: '\033[1;31m',
    RiskTier.MEDIUM: '\033[1;33m',
    RiskTier.LOW: '\033[33m',
    RiskTier.CLEAN: '\033[32m',
}

LOG_LEVELS = ('INFO', 'WARN', 'ERROR')


def _stdout_is_tty() -> bool:
    isatty = getattr(sys.stdout, 'isatty', None)
    return bool(isatty and isatty())


_use_color = _stdout_is_tty()


def set_color_enabled(enabled: bool):
    """Override automatic color detection."""
    global _use_color
    _use_color = enabled


def _wrap(code: str, text: str) -> str:
    return f'{code}{text}{_RESET}' if _use_color else text


def style(kind: str, text: str) -> str:
    """Colour ``text`` as one of: header, dim, finding, error, ok.

    Raises:
        KeyError: For an unknown style name.
    """
    return _wrap(_STYLES[kind], text)


def tier_style(tier: RiskTier, text: str) -> str:
    """Colour ``text`` by risk tier (red high, yellow medium/low, green clean)."""
    return _wrap(_TIER_STYLES[tier], text)


def rule(width: int = 60) -> str:
    """A dim horizontal separator."""
    return style('dim', '-' * width)


def log_line(level: str, msg: str, now: Optional[datetime] = None) -> str:
    """Format a timestamped log file line, e.g. ``[2024-06-15 10:30:00] [WARN]  msg``."""
    if level not in LOG_LEVELS:
        raise ValueError(f'Unknown log level: {level!r}')
    ts = (now or datetime.now()).strftime('%Y-%m-%d %H:%M:%S')
    return f'[{ts}] {"[" + level + "]":<7} {msg}'
