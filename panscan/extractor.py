"""Candidate digit-run extraction from lines of text.

A run is a maximal sequence of ASCII digits in which spaces and hyphens
may appear between digits, so ``4111 1111-1111 1111`` is one run. Any other
character (letters, ``.``, ``/``, tabs) ends the run.
"""

import re
from typing import Iterator

from panscan.models import DigitRun

# Shortest and longest primary account numbers
MIN_PAN_LENGTH = 13
MAX_PAN_LENGTH = 19

SEPARATORS = ' -'

# A digit, then any number of (separators*, digit). Trailing separators are
# left out of the match so the run ends on its last digit.
_RUN_PATTERN = re.compile(r'[0-9](?:[ \-]*[0-9])*')

_STRIP_TABLE = str.maketrans('', '', SEPARATORS)


def strip_separators(text: str) -> str:
    """Remove spaces and hyphens from ``text``."""
    return text.translate(_STRIP_TABLE)


def iter_digit_runs(line: str,
                    min_length: int = MIN_PAN_LENGTH,
                    max_length: int = MAX_PAN_LENGTH) -> Iterator[DigitRun]:
    """Yield candidate DigitRuns from ``line``, left to right.

    Runs whose separator-free length falls outside
    [min_length, max_length] are dropped.
    """
    for m in _RUN_PATTERN.finditer(line):
        raw = m.group()
        digits = strip_separators(raw)
        if not min_length <= len(digits) <= max_length:
            continue
        yield DigitRun(
            digits=digits,
            start=m.start(),
            end=m.end(),
            separators=len(raw) - len(digits),
        )
