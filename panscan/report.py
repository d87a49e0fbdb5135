"""Scan report generation (text, JSON, CSV and PDF)."""

import csv
import json
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from fpdf import FPDF

import panscan
from panscan.models import Brand, Finding, RiskTier, ScanResult, Summary
from panscan.scanner import redact_line

CSV_COLUMNS = [
    'file_path', 'line_number', 'column', 'brand', 'pan_length', 'bin',
    'last_four', 'masked_pan', 'length_mismatch', 'line_text',
]


def _display_lines(result: ScanResult) -> Dict[int, str]:
    """Line text per line number, redacted with the findings' mask character."""
    by_line: Dict[int, List[Finding]] = defaultdict(list)
    for f in result.findings:
        by_line[f.line_number].append(f)
    lines = {}
    for number, findings in by_line.items():
        text = findings[0].raw_line_text
        if any(f.masked for f in findings):
            text = redact_line(text, findings, findings[0].mask_char)
        lines[number] = text
    return lines


def finding_record(finding: Finding, line_text: str) -> dict:
    """Serializable dict for one finding."""
    return {
        'file_path': str(finding.file_path),
        'line_number': finding.line_number,
        'column': finding.column,
        'brand': finding.brand.value,
        'pan_length': finding.pan_length,
        'bin': finding.bin,
        'last_four': finding.last_four,
        'masked_pan': finding.masked_pan,
        'length_mismatch': finding.length_mismatch,
        'line_text': line_text,
    }


def summary_record(summary: Summary) -> dict:
    """Serializable dict for a Summary."""
    return {
        'files_scanned': summary.files_scanned,
        'dirs_traversed': summary.dirs_traversed,
        'total_bytes': summary.total_bytes,
        'total_findings': summary.total_findings,
        'files_with_findings': summary.files_with_findings,
        'clean_file_percentage': summary.clean_file_percentage,
        'length_mismatches': summary.length_mismatches,
        'brand_counts': {b.value: summary.brand_counts.get(b, 0) for b in Brand},
        'risk_tiers': {t.value: [str(p) for p in summary.risk_tiers.get(t, ())]
                       for t in RiskTier},
        'errors': [{'file_path': str(p), 'error': e} for p, e in summary.errors],
    }


def _tier_lookup(summary: Summary) -> Dict[Path, RiskTier]:
    return {path: tier for tier, paths in summary.risk_tiers.items()
            for path in paths}


def _ordered(results: Sequence[ScanResult]) -> List[ScanResult]:
    return sorted(results, key=lambda r: str(r.file_path))


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def format_finding(finding: Finding, line_text: str) -> str:
    """Multi-line plain-text block for one finding."""
    text = (
        f'File: {finding.file_path}\n'
        f'Line: {finding.line_number}\n'
        f'Brand: {finding.brand.value}\n'
        f'PAN Length: {finding.pan_length}\n'
        f'BIN: {finding.bin}\n'
        f'Last Four: {finding.last_four}\n'
        f'Masked PAN: {finding.masked_pan}\n'
        f'Line Content: {line_text.strip()}\n'
    )
    if finding.length_mismatch:
        text += 'Note: length not standard for this brand\n'
    return text


def format_summary(summary: Summary) -> str:
    """Plain-text summary block."""
    lines = [
        'Summary',
        f'  Files scanned:     {summary.files_scanned}',
        f'  Dirs traversed:    {summary.dirs_traversed}',
        f'  Bytes scanned:     {summary.total_bytes}',
        f'  Total findings:    {summary.total_findings}',
        f'  Clean files:       {summary.clean_file_percentage}%',
    ]
    counted = [(b, n) for b, n in summary.brand_counts.items() if n]
    if counted:
        lines.append('  By brand:')
        for brand, n in counted:
            lines.append(f'    {brand.value}: {n}')
    for tier in (RiskTier.HIGH, RiskTier.MEDIUM, RiskTier.LOW):
        paths = summary.risk_tiers.get(tier, ())
        if paths:
            lines.append(f'  {tier.value.capitalize()} risk ({len(paths)}):')
            for p in paths:
                lines.append(f'    {p}')
    if summary.errors:
        lines.append(f'  Errors ({len(summary.errors)}):')
        for p, e in summary.errors:
            lines.append(f'    {p}: {e}')
    return '\n'.join(lines) + '\n'


def format_text_report(results: Sequence[ScanResult], summary: Summary) -> str:
    """Full plain-text report: every finding followed by the summary."""
    blocks = [f'Found {summary.total_findings} potential credit card numbers:\n']
    for result in _ordered(results):
        lines = _display_lines(result)
        for f in result.findings:
            blocks.append(format_finding(f, lines[f.line_number]))
    blocks.append(format_summary(summary))
    return '\n'.join(blocks)


# ---------------------------------------------------------------------------
# JSON / CSV
# ---------------------------------------------------------------------------

def generate_json_report(
    results: Sequence[ScanResult],
    summary: Summary,
    output_path: Optional[Path] = None,
) -> dict:
    """Build the JSON scan report and optionally write it to disk.

    Args:
        results: ScanResults of the run.
        summary: Summary from aggregate().
        output_path: If provided, write the report JSON to this file.

    Returns:
        The report as a dict.
    """
    tiers = _tier_lookup(summary)
    file_records = []
    for result in _ordered(results):
        lines = _display_lines(result)
        record = {
            'file_path': str(result.file_path),
            'byte_size': result.byte_size,
            'risk_tier': tiers.get(result.file_path, RiskTier.CLEAN).value,
            'scan_time_ms': round(result.scan_time_ms, 1),
            'findings': [finding_record(f, lines[f.line_number])
                         for f in result.findings],
        }
        if result.error:
            record['error'] = result.error
        file_records.append(record)

    report = {
        'panscan_version': panscan.__version__,
        'report_id': str(uuid.uuid4()),
        'generated_at': datetime.now(timezone.utc).isoformat(),
        'summary': summary_record(summary),
        'files': file_records,
    }

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(report, f, indent=2)

    return report


def write_csv_report(results: Sequence[ScanResult], output_path: Path) -> Path:
    """Write one CSV row per finding."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for result in _ordered(results):
            lines = _display_lines(result)
            for finding in result.findings:
                rec = finding_record(finding, lines[finding.line_number])
                writer.writerow({k: rec[k] for k in CSV_COLUMNS})
    return output_path


# ---------------------------------------------------------------------------
# PDF report generation
# ---------------------------------------------------------------------------

_TIER_COLORS = {
    'high':   (192, 48, 48),    # red
    'medium': (200, 130, 0),    # orange
    'low':    (200, 150, 0),    # amber
    'clean':  (34, 139, 34),    # forest green
    'error':  (128, 128, 128),  # gray
}


def _trunc(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if it exceeds max_len."""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + '...'


def _sanitize_for_pdf(text: str) -> str:
    """Replace characters outside printable ASCII with '?'.

    fpdf's built-in Helvetica font only covers Latin-1 and rejects anything
    else.
    """
    return ''.join(c if 0x20 <= ord(c) <= 0x7E else '?' for c in text)


def _pdf_kv_table(pdf: FPDF, rows: List[Tuple[str, str]]):
    """Render a 2-column key-value table with alternating row shading."""
    col_w = [65, 115]
    for i, (key, value) in enumerate(rows):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(240, 240, 245)
        pdf.set_font('Helvetica', 'B', 9)
        pdf.cell(col_w[0], 7, key, border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        pdf.set_font('Helvetica', '', 9)
        pdf.cell(col_w[1], 7, _sanitize_for_pdf(str(value)), border=0, fill=fill,
                 new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)


def _pdf_file_table(pdf: FPDF, files: list):
    """Render the per-file results table."""
    col_w = [8, 112, 22, 18, 30]  # total = 190
    headers = ['#', 'File', 'Risk', 'Findings', 'Size (bytes)']

    pdf.set_font('Helvetica', 'B', 7)
    pdf.set_fill_color(60, 60, 80)
    pdf.set_text_color(255, 255, 255)
    for j, hdr in enumerate(headers):
        nx = 'RIGHT' if j < len(headers) - 1 else 'LMARGIN'
        ny = 'TOP' if j < len(headers) - 1 else 'NEXT'
        pdf.cell(col_w[j], 6, hdr, border=0, fill=True, new_x=nx, new_y=ny)
    pdf.set_text_color(0, 0, 0)

    for i, frec in enumerate(files):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(245, 245, 248)

        status = 'error' if frec.get('error') else frec.get('risk_tier', 'clean')
        pdf.set_font('Helvetica', '', 7)
        pdf.cell(col_w[0], 5.5, str(i + 1), border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        pdf.cell(col_w[1], 5.5,
                 _sanitize_for_pdf(_trunc(frec.get('file_path', ''), 80)),
                 border=0, fill=fill, new_x='RIGHT', new_y='TOP')
        r, g, b = _TIER_COLORS.get(status, (0, 0, 0))
        pdf.set_text_color(r, g, b)
        pdf.set_font('Helvetica', 'B', 7)
        pdf.cell(col_w[2], 5.5, status.upper(), border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        pdf.set_text_color(0, 0, 0)
        pdf.set_font('Helvetica', '', 7)
        pdf.cell(col_w[3], 5.5, str(len(frec.get('findings', []))), border=0,
                 fill=fill, new_x='RIGHT', new_y='TOP')
        pdf.cell(col_w[4], 5.5, str(frec.get('byte_size', 0)), border=0,
                 fill=fill, new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)


def generate_pdf_report(report: dict, output_path: Path,
                        institution: str = "") -> Path:
    """Generate a printable PDF scan report.

    Args:
        report: The report dict (as returned by generate_json_report).
        output_path: Path where the PDF file will be written.
        institution: Optional organisation name to display in the header.

    Returns:
        The output_path.

    Raises:
        ValueError: If the report dict is missing required keys.
    """
    missing = {'report_id', 'summary', 'files'} - set(report.keys())
    if missing:
        raise ValueError(
            f"Report dict is missing required keys: {', '.join(sorted(missing))}")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pdf = FPDF(orientation='P', unit='mm', format='A4')
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    # --- Header ---
    pdf.set_font('Helvetica', 'B', 16)
    pdf.cell(0, 10, 'panscan Card Data Scan Report', new_x='LMARGIN', new_y='NEXT')
    if institution:
        pdf.set_font('Helvetica', 'B', 12)
        pdf.set_text_color(30, 60, 120)
        pdf.cell(0, 7, _sanitize_for_pdf(institution), new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
    pdf.set_font('Helvetica', '', 9)
    pdf.set_text_color(120, 120, 120)
    pdf.cell(0, 5, f'panscan v{report.get("panscan_version", "?")}  |  '
             f'{report.get("generated_at", "-")}  |  {report["report_id"]}',
             new_x='LMARGIN', new_y='NEXT')
    pdf.set_text_color(0, 0, 0)
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(5)

    # --- Summary ---
    summary = report['summary']
    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(0, 7, 'Summary', new_x='LMARGIN', new_y='NEXT')
    tiers = summary.get('risk_tiers', {})
    _pdf_kv_table(pdf, [
        ('Files scanned', str(summary.get('files_scanned', 0))),
        ('Directories traversed', str(summary.get('dirs_traversed', 0))),
        ('Bytes scanned', str(summary.get('total_bytes', 0))),
        ('Card numbers found', str(summary.get('total_findings', 0))),
        ('Clean files', f'{summary.get("clean_file_percentage", 0.0)}%'),
        ('High / medium / low risk',
         ' / '.join(str(len(tiers.get(t, []))) for t in ('high', 'medium', 'low'))),
        ('Errors', str(len(summary.get('errors', [])))),
    ])

    brand_rows = [(name, str(n)) for name, n in summary.get('brand_counts', {}).items() if n]
    if brand_rows:
        pdf.set_font('Helvetica', 'B', 11)
        pdf.cell(0, 7, 'Findings by Brand', new_x='LMARGIN', new_y='NEXT')
        _pdf_kv_table(pdf, brand_rows)

    # --- File results ---
    files = report['files']
    if files:
        pdf.set_font('Helvetica', 'B', 11)
        pdf.cell(0, 7, 'File Results', new_x='LMARGIN', new_y='NEXT')
        _pdf_file_table(pdf, files)

    # --- Detailed findings ---
    with_findings = [f for f in files if f.get('findings')]
    if with_findings:
        pdf.set_font('Helvetica', 'B', 11)
        pdf.cell(0, 7, 'Detailed Findings', new_x='LMARGIN', new_y='NEXT')
        pdf.ln(1)

        for frec in with_findings:
            pdf.set_font('Helvetica', 'B', 9)
            pdf.set_text_color(200, 130, 0)
            pdf.cell(0, 6, _sanitize_for_pdf(_trunc(frec['file_path'], 100)),
                     new_x='LMARGIN', new_y='NEXT')
            pdf.set_text_color(0, 0, 0)

            for finding in frec['findings']:
                if pdf.get_y() > 260:
                    pdf.add_page()
                pdf.set_font('Helvetica', '', 8)
                pdf.cell(5, 5, '', new_x='RIGHT', new_y='TOP')
                pdf.cell(18, 5, f'line {finding["line_number"]}',
                         new_x='RIGHT', new_y='TOP')
                pdf.set_font('Helvetica', 'B', 8)
                pdf.cell(35, 5, finding['brand'], new_x='RIGHT', new_y='TOP')
                pdf.set_font('Helvetica', '', 8)
                pdf.cell(0, 5, _sanitize_for_pdf(finding['masked_pan']),
                         new_x='LMARGIN', new_y='NEXT')
            pdf.ln(2)

    # --- Errors ---
    error_files = [f for f in files if f.get('error')]
    if error_files:
        pdf.set_font('Helvetica', 'B', 9)
        pdf.set_text_color(192, 48, 48)
        pdf.cell(0, 6, 'Errors:', new_x='LMARGIN', new_y='NEXT')
        pdf.set_font('Helvetica', '', 8)
        for f in error_files:
            pdf.cell(0, 5,
                     _sanitize_for_pdf(f'  {_trunc(f["file_path"], 70)}: '
                                       f'{_trunc(f["error"], 60)}'),
                     new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
        pdf.ln(2)

    # --- Footer ---
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(4)
    pdf.set_font('Helvetica', 'I', 8)
    pdf.set_text_color(100, 100, 100)
    pdf.multi_cell(0, 4,
        'This report lists digit sequences that pass the Luhn checksum and '
        'were classified by card brand prefix. Only the first six and last '
        'four digits are shown when masking is enabled. Findings may include '
        'test numbers or other Luhn-valid identifiers and should be reviewed '
        'before remediation.'
    )
    pdf.set_text_color(0, 0, 0)

    pdf.output(str(output_path))
    return output_path
