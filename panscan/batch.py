"""File collection and batch scanning -- sequential and thread-pool execution.

Each file is scanned by its own task writing into a pre-allocated result
slot, so no scan state is shared between tasks. Aggregation happens only
after the pool has shut down.
"""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from panscan.models import BatchResult, ScanResult
from panscan.scanner import DEFAULT_MASK_CHAR, scan_file

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def default_workers() -> int:
    """Number of workers matching available parallelism."""
    return os.cpu_count() or 1


def _normalize_extensions(extensions: Optional[Iterable[str]]) -> Optional[set]:
    if not extensions:
        return None
    return {e.lower() if e.startswith('.') else '.' + e.lower()
            for e in extensions}


def collect_files(
    paths: Iterable[PathLike],
    extensions: Optional[Iterable[str]] = None,
) -> Tuple[List[Path], int]:
    """Collect files to scan from files and directories.

    Directories are walked recursively without following symlinked
    directories. Every path, including files found by the walk, is resolved
    to absolute form and deduplicated, so a symlinked file and its target
    are scanned once.

    Args:
        paths: Files and/or directories.
        extensions: If set, only collect files with these suffixes
                    (e.g. ``['.txt', 'log']``). Explicit file paths are
                    always kept.

    Returns:
        (sorted list of unique absolute file paths, directories traversed)
    """
    wanted = _normalize_extensions(extensions)
    seen = set()
    dirs_seen = set()

    for raw in paths:
        path = Path(raw).resolve()
        if not path.is_dir():
            # Missing paths are kept so the scanner reports them per file
            seen.add(path)
            continue
        for root, dirnames, filenames in os.walk(path):
            dirnames.sort()
            dirs_seen.add(Path(root))
            for fname in filenames:
                if wanted is not None and Path(fname).suffix.lower() not in wanted:
                    continue
                # Symlinked files collapse onto their target
                seen.add((Path(root) / fname).resolve())

    return sorted(seen), len(dirs_seen)


def _scan_one(filepath: Path, mask: bool, mask_char: str) -> ScanResult:
    try:
        return scan_file(filepath, mask=mask, mask_char=mask_char)
    except Exception as e:
        logger.exception("scan_file failed for %s", filepath)
        return ScanResult(file_path=filepath, error=f'{type(e).__name__}: {e}')


def scan_batch(
    paths: Iterable[PathLike],
    workers: Optional[int] = None,
    mask: bool = True,
    mask_char: str = DEFAULT_MASK_CHAR,
    extensions: Optional[Iterable[str]] = None,
    progress_callback: Optional[Callable] = None,
) -> BatchResult:
    """Scan a batch of files and directories for card numbers.

    Args:
        paths: Files and/or directories to scan.
        workers: Number of parallel workers. None uses the CPU count;
                 1 scans sequentially.
        mask: Mask numbers in findings.
        mask_char: Character used for masked digits.
        extensions: Only scan files with these suffixes inside directories.
        progress_callback: Called with (index, total, filepath, result) after each file.

    Returns:
        BatchResult holding one ScanResult per file.
    """
    t0 = time.monotonic()
    files, dirs_traversed = collect_files(paths, extensions)
    if workers is None:
        workers = default_workers()

    if workers > 1 and len(files) > 1:
        results = _batch_parallel(files, mask, mask_char, workers,
                                  progress_callback)
    else:
        results = _batch_sequential(files, mask, mask_char, progress_callback)

    return BatchResult(
        results=results,
        dirs_traversed=dirs_traversed,
        total_time_seconds=time.monotonic() - t0,
    )


def _batch_sequential(
    files: List[Path],
    mask: bool,
    mask_char: str,
    progress_callback: Optional[Callable],
) -> List[ScanResult]:
    """Scan files one after another."""
    results = []
    total = len(files)

    for i, filepath in enumerate(files):
        result = _scan_one(filepath, mask, mask_char)
        results.append(result)
        if progress_callback:
            progress_callback(i + 1, total, filepath, result)

    return results


def _batch_parallel(
    files: List[Path],
    mask: bool,
    mask_char: str,
    workers: int,
    progress_callback: Optional[Callable],
) -> List[ScanResult]:
    """Scan files in parallel using a thread pool.

    Every task owns one slot of the pre-allocated results list; the list is
    read only after the executor has joined all tasks.
    """
    total = len(files)
    results: List[Optional[ScanResult]] = [None] * total
    lock = threading.Lock()
    completed_count = [0]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_scan_one, filepath, mask, mask_char): (i, filepath)
            for i, filepath in enumerate(files)
        }

        for future in as_completed(futures):
            index, filepath = futures[future]
            result = future.result()
            results[index] = result

            if progress_callback:
                with lock:
                    completed_count[0] += 1
                    progress_callback(completed_count[0], total, filepath, result)

    return results
