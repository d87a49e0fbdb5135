"""Data models for panscan findings, per-file results and run summaries."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class Brand(Enum):
    """Card brand, valued by its display name."""
    VISA = 'Visa'
    MASTERCARD = 'Mastercard'
    AMERICAN_EXPRESS = 'American Express'
    DISCOVER = 'Discover'
    JCB = 'JCB'
    DINERS_CLUB = 'Diners Club'
    UNIONPAY = 'UnionPay'
    UNKNOWN = 'Unknown'


class RiskTier(Enum):
    """Coarse per-file risk classification."""
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'
    CLEAN = 'clean'


@dataclass(frozen=True)
class DigitRun:
    """A candidate digit sequence extracted from one line of text.

    ``start``/``end`` are character offsets into the line (end exclusive,
    covering first to last digit). ``separators`` counts the spaces and
    hyphens removed to produce ``digits``.
    """
    digits: str
    start: int
    end: int
    separators: int = 0

    def __len__(self) -> int:
        return len(self.digits)


@dataclass(frozen=True)
class Classification:
    """Brand classification of a Luhn-valid digit string."""
    brand: Brand
    bin: str
    last_four: str
    length_mismatch: bool = False


@dataclass(frozen=True)
class Finding:
    """A single Luhn-valid card number found in a file."""
    file_path: Path
    line_number: int
    column: int
    end_column: int
    brand: Brand
    pan_length: int
    bin: str
    last_four: str
    masked_pan: str
    raw_line_text: str
    length_mismatch: bool = False
    masked: bool = True
    mask_char: str = '*'


@dataclass
class ScanResult:
    """Result of scanning a single file for card numbers."""
    file_path: Path
    findings: List[Finding] = field(default_factory=list)
    byte_size: int = 0
    error: Optional[str] = None
    scan_time_ms: float = 0.0

    @property
    def is_clean(self) -> bool:
        """True when the file was read and held no card numbers.

        Stricter than RiskTier.CLEAN, which also holds files that could not
        be read, since those have zero findings.
        """
        return not self.findings and self.error is None


@dataclass
class BatchResult:
    """Result of a concurrent scan run, before aggregation."""
    results: List[ScanResult] = field(default_factory=list)
    dirs_traversed: int = 0
    total_time_seconds: float = 0.0


@dataclass(frozen=True)
class Summary:
    """Corpus-wide statistics built once from all ScanResults."""
    files_scanned: int
    dirs_traversed: int
    total_bytes: int
    total_findings: int
    brand_counts: Dict[Brand, int]
    risk_tiers: Dict[RiskTier, Tuple[Path, ...]]
    clean_file_percentage: float
    errors: Tuple[Tuple[Path, str], ...] = ()
    length_mismatches: int = 0

    @property
    def files_with_findings(self) -> int:
        return self.files_scanned - len(self.risk_tiers.get(RiskTier.CLEAN, ()))
