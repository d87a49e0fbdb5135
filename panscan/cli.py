"""CLI interface for panscan -- scan and check subcommands."""

import sys
import time
from pathlib import Path

import click

import panscan
from panscan import log
from panscan.aggregator import RiskPolicy, aggregate
from panscan.batch import default_workers, scan_batch
from panscan.brands import classify
from panscan.extractor import strip_separators
from panscan.luhn import is_luhn_valid
from panscan.models import RiskTier
from panscan.report import (
    format_summary,
    format_text_report,
    generate_json_report,
    generate_pdf_report,
    write_csv_report,
)
from panscan.scanner import mask_pan


@click.group()
@click.version_option(version=panscan.__version__, prog_name='panscan')
def main():
    """panscan -- find credit card numbers in files.

    Detects digit sequences that pass the Luhn checksum, classifies them
    by card brand and summarizes the results by file risk.
    """
    pass


@main.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path())
@click.option('--workers', '-w', type=click.IntRange(min=1),
              help='Number of parallel workers (default: CPU count).')
@click.option('--no-mask', is_flag=True,
              help='Report full card numbers instead of masking them.')
@click.option('--mask-char', default='*', show_default=True,
              help='Character used for masked digits.')
@click.option('--ext', 'extensions', multiple=True,
              help='Only scan files with this extension inside directories (repeatable).')
@click.option('--policy', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with risk tier thresholds.')
@click.option('--json-out', type=click.Path(), help='Write results as JSON to file.')
@click.option('--csv-out', type=click.Path(), help='Write findings as CSV to file.')
@click.option('--pdf-out', type=click.Path(), help='Write a PDF report to file.')
@click.option('--output', '-o', type=click.Path(), help='Write a text report to file.')
@click.option('--verbose', '-v', is_flag=True, help='Show clean files and finding details.')
@click.option('--log', 'log_path', type=click.Path(), help='Write log to file.')
@click.option('--no-color', is_flag=True, help='Disable colored output.')
@click.option('--fail-on-findings', is_flag=True,
              help='Exit with status 1 if any card number is found.')
def scan(paths, workers, no_mask, mask_char, extensions, policy, json_out,
         csv_out, pdf_out, output, verbose, log_path, no_color, fail_on_findings):
    """Scan files for credit card numbers (read-only).

    PATHS can be files or directories to scan recursively.
    """
    if no_color:
        log.set_color_enabled(False)
    if len(mask_char) != 1:
        click.echo(log.style('error', 'Error: --mask-char must be a single character.'),
                   err=True)
        sys.exit(2)

    try:
        risk_policy = RiskPolicy.from_json(policy) if policy else RiskPolicy.default()
    except ValueError as e:
        click.echo(log.style('error', f'Error: {e}'), err=True)
        sys.exit(2)

    log_file = open(log_path, 'w') if log_path else None
    try:
        summary = _run_scan(
            paths, workers, not no_mask, mask_char, extensions, risk_policy,
            json_out, csv_out, pdf_out, output, verbose, log_file,
        )
    finally:
        if log_file:
            log_file.close()

    if fail_on_findings and summary.total_findings > 0:
        high = len(summary.risk_tiers.get(RiskTier.HIGH, ()))
        click.echo(log.tier_style(
            RiskTier.HIGH if high else RiskTier.MEDIUM,
            f'WARNING: card numbers found in {summary.files_with_findings} '
            f'file(s) ({high} high risk)'))
        sys.exit(1)


def _run_scan(paths, workers, mask, mask_char, extensions, risk_policy,
              json_out, csv_out, pdf_out, output, verbose, log_file):
    """Scan, print progress and summary, write the requested reports."""

    def log_msg(msg, level='INFO'):
        if log_file:
            log_file.write(log.log_line(level, msg) + '\n')
            log_file.flush()

    workers = workers or default_workers()
    click.echo(log.style('header', f'panscan v{panscan.__version__}'))
    click.echo(f'Scanning {len(paths)} path(s) with {workers} worker(s)...')
    log_msg(f'Scan started: {", ".join(paths)} ({workers} workers)')

    t0 = time.time()

    def progress(i, total, filepath, result):
        prefix = f'  [{i}/{total}] {filepath}'
        if result.error:
            click.echo(log.style('error', f'{prefix} — ERROR: {result.error}'))
            log_msg(f'{filepath}: {result.error}', 'ERROR')
            return
        tier = risk_policy.tier_for(result)
        if result.findings:
            click.echo(log.tier_style(
                tier, f'{prefix} — {len(result.findings)} finding(s), {tier.value} risk'))
            log_msg(f'{filepath}: {len(result.findings)} finding(s), '
                    f'{tier.value} risk', 'WARN')
            if verbose:
                for f in result.findings:
                    note = ' (non-standard length)' if f.length_mismatch else ''
                    click.echo(log.style(
                        'finding',
                        f'    line {f.line_number}: {f.brand.value} '
                        f'{f.masked_pan}{note}'))
        elif verbose:
            click.echo(log.tier_style(tier, f'{prefix} — CLEAN'))

    batch = scan_batch(
        paths, workers=workers, mask=mask, mask_char=mask_char,
        extensions=extensions, progress_callback=progress,
    )
    summary = aggregate(batch.results, dirs_traversed=batch.dirs_traversed,
                        policy=risk_policy)

    if not batch.results:
        click.echo('No files found to scan.')

    click.echo('')
    click.echo(log.rule())
    click.echo(format_summary(summary), nl=False)
    click.echo(log.style('dim', f'Done in {time.time() - t0:.1f}s'))
    log_msg(f'Scan finished: {summary.files_scanned} files, '
            f'{summary.total_findings} findings, '
            f'{summary.clean_file_percentage}% clean')

    report = None
    if json_out or pdf_out:
        report = generate_json_report(batch.results, summary,
                                      output_path=Path(json_out) if json_out else None)
    if json_out:
        click.echo(f'Results written to {json_out}')
    if csv_out:
        write_csv_report(batch.results, Path(csv_out))
        click.echo(f'Findings written to {csv_out}')
    if pdf_out:
        generate_pdf_report(report, Path(pdf_out))
        click.echo(f'PDF report written to {pdf_out}')
    if output:
        Path(output).write_text(format_text_report(batch.results, summary))
        click.echo(f'Results written to {output}')

    return summary


@main.command()
@click.argument('number')
@click.option('--no-mask', is_flag=True, help='Print the full number.')
def check(number, no_mask):
    """Check a single NUMBER with the Luhn algorithm and identify its brand.

    Spaces and hyphens in NUMBER are ignored.
    """
    digits = strip_separators(number)
    shown = digits if no_mask else mask_pan(digits)

    if not is_luhn_valid(digits):
        click.echo(log.style('error', f'{shown}: fails Luhn check'))
        sys.exit(1)

    cls = classify(digits)
    click.echo(log.style('ok', f'{shown}: passes Luhn check'))
    click.echo(f'Brand: {cls.brand.value}')
    click.echo(f'Length: {len(digits)}')
    click.echo(f'BIN: {cls.bin}')
    click.echo(f'Last Four: {cls.last_four}')
    if cls.length_mismatch:
        click.echo(log.style('finding', f'Note: length {len(digits)} is not standard '
                                   f'for {cls.brand.value}'))


if __name__ == '__main__':
    main()
