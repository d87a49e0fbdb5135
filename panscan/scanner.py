"""Card number detection engine -- extraction, validation, classification.

Runs every line of a file through the digit extractor, keeps the runs that
pass the Luhn check, classifies them by brand and turns each one into a
Finding carrying its location and a masked copy of the number.
"""

import logging
import os
import time
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple

from panscan.brands import BIN_LENGTH, LAST_FOUR_LENGTH, classify
from panscan.extractor import iter_digit_runs
from panscan.luhn import is_luhn_valid
from panscan.models import DigitRun, Finding, ScanResult

logger = logging.getLogger(__name__)

DEFAULT_MASK_CHAR = '*'


def mask_pan(pan: str, mask_char: str = DEFAULT_MASK_CHAR) -> str:
    """Keep the BIN and last four digits, mask every digit in between.

    Strings too short to hold both are masked entirely.
    """
    keep = BIN_LENGTH + LAST_FOUR_LENGTH
    if len(pan) < keep:
        return mask_char * len(pan)
    middle = ''.join(mask_char if c.isdigit() else c
                     for c in pan[BIN_LENGTH:-LAST_FOUR_LENGTH])
    return pan[:BIN_LENGTH] + middle + pan[-LAST_FOUR_LENGTH:]


def build_finding(file_path: Path, line_number: int, line_text: str,
                  run: DigitRun, mask: bool = True,
                  mask_char: str = DEFAULT_MASK_CHAR) -> Finding:
    """Build a Finding for a Luhn-valid digit run."""
    cls = classify(run.digits)
    return Finding(
        file_path=file_path,
        line_number=line_number,
        column=run.start,
        end_column=run.end,
        brand=cls.brand,
        pan_length=len(run.digits),
        bin=cls.bin,
        last_four=cls.last_four,
        masked_pan=mask_pan(run.digits, mask_char) if mask else run.digits,
        raw_line_text=line_text,
        length_mismatch=cls.length_mismatch,
        masked=mask,
        mask_char=mask_char,
    )


def find_in_line(file_path: Path, line_number: int, line_text: str,
                 mask: bool = True,
                 mask_char: str = DEFAULT_MASK_CHAR) -> List[Finding]:
    """Return findings for one line, in left-to-right order."""
    return [
        build_finding(file_path, line_number, line_text, run,
                      mask=mask, mask_char=mask_char)
        for run in iter_digit_runs(line_text)
        if is_luhn_valid(run.digits)
    ]


def redact_line(line_text: str, findings: Sequence[Finding],
                mask_char: str = DEFAULT_MASK_CHAR) -> str:
    """Mask the middle digits of every finding span within ``line_text``.

    Separators inside a span keep their positions; only digits between the
    first six and last four of each number are replaced.
    """
    chars = list(line_text)
    for f in findings:
        seen = 0
        for i in range(f.column, min(f.end_column, len(chars))):
            if not chars[i].isdigit():
                continue
            if BIN_LENGTH <= seen < f.pan_length - LAST_FOUR_LENGTH:
                chars[i] = mask_char
            seen += 1
    return ''.join(chars)


def read_lines(filepath: Path) -> Iterator[Tuple[int, str]]:
    """Yield (line_number, text) pairs, 1-based, without line endings.

    Content is decoded as strict UTF-8, so undecodable bytes raise
    UnicodeDecodeError.
    """
    with open(filepath, 'r', encoding='utf-8', errors='strict', newline='') as f:
        for number, line in enumerate(f, 1):
            yield number, line.rstrip('\r\n')


def scan_lines(file_path: Path, lines: Iterable[Tuple[int, str]],
               mask: bool = True,
               mask_char: str = DEFAULT_MASK_CHAR) -> List[Finding]:
    """Scan (line_number, text) pairs and return findings in line order."""
    findings = []
    for line_number, text in lines:
        findings.extend(find_in_line(file_path, line_number, text,
                                     mask=mask, mask_char=mask_char))
    return findings


def scan_file(filepath: Path, mask: bool = True,
              mask_char: str = DEFAULT_MASK_CHAR) -> ScanResult:
    """Scan a single text file for card numbers.

    Unreadable files (missing, no permission, a directory, invalid UTF-8)
    produce a ScanResult with ``error`` set and no findings.

    Args:
        filepath: Path to the file to scan.
        mask: If True, findings carry the masked number instead of the full PAN.
        mask_char: Character used for masked digits.

    Returns:
        ScanResult for the file.
    """
    filepath = Path(filepath)
    t0 = time.monotonic()

    try:
        byte_size = os.path.getsize(filepath)
    except OSError:
        byte_size = 0

    try:
        findings = scan_lines(filepath, read_lines(filepath),
                              mask=mask, mask_char=mask_char)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("scan_file: cannot read %s: %s", filepath, e)
        return ScanResult(
            file_path=filepath,
            byte_size=byte_size,
            error=f'{type(e).__name__}: {e}',
            scan_time_ms=(time.monotonic() - t0) * 1000,
        )

    return ScanResult(
        file_path=filepath,
        findings=findings,
        byte_size=byte_size,
        scan_time_ms=(time.monotonic() - t0) * 1000,
    )
