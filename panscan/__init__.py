"""panscan -- Luhn-validated credit card number scanner for files and directories."""

__version__ = "1.0.0"

from panscan.models import (
    BatchResult,
    Brand,
    Classification,
    DigitRun,
    Finding,
    RiskTier,
    ScanResult,
    Summary,
)
from panscan.luhn import is_luhn_valid
from panscan.extractor import iter_digit_runs
from panscan.brands import classify
from panscan.scanner import build_finding, mask_pan, scan_file
from panscan.batch import collect_files, scan_batch
from panscan.aggregator import RiskPolicy, aggregate
from panscan.report import (
    format_text_report,
    generate_json_report,
    generate_pdf_report,
    write_csv_report,
)

__all__ = [
    "__version__",
    "Brand",
    "RiskTier",
    "DigitRun",
    "Classification",
    "Finding",
    "ScanResult",
    "BatchResult",
    "Summary",
    "is_luhn_valid",
    "iter_digit_runs",
    "classify",
    "build_finding",
    "mask_pan",
    "scan_file",
    "collect_files",
    "scan_batch",
    "RiskPolicy",
    "aggregate",
    "format_text_report",
    "generate_json_report",
    "generate_pdf_report",
    "write_csv_report",
]
