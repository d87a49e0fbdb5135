"""Tests for the CLI interface."""

import csv
import json

import pytest
from click.testing import CliRunner

import panscan
from panscan import cli as cli_mod
from panscan.cli import main
from tests.conftest import AMEX, LUHN_INVALID, VISA, VISA_15_MISMATCH


@pytest.fixture
def runner():
    return CliRunner()


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(main, ['--version'])
        assert result.exit_code == 0
        assert panscan.__version__ in result.output


class TestScanCommand:
    def test_scan_file(self, runner, visa_file):
        result = runner.invoke(main, ['scan', str(visa_file), '--no-color'])
        assert result.exit_code == 0
        assert '1 finding(s)' in result.output
        assert 'Files scanned:     1' in result.output

    def test_scan_verbose_masked(self, runner, visa_file):
        result = runner.invoke(main, ['scan', str(visa_file), '--verbose'])
        assert result.exit_code == 0
        assert 'line 1: Visa 411111******1111' in result.output
        assert VISA not in result.output

    def test_scan_no_mask(self, runner, visa_file):
        result = runner.invoke(main, ['scan', str(visa_file), '-v', '--no-mask'])
        assert result.exit_code == 0
        assert VISA in result.output

    def test_scan_clean_verbose(self, runner, clean_file):
        result = runner.invoke(main, ['scan', str(clean_file), '-v'])
        assert result.exit_code == 0
        assert 'CLEAN' in result.output

    def test_scan_directory(self, runner, scan_tree):
        result = runner.invoke(main, ['scan', str(scan_tree), '--workers', '2'])
        assert result.exit_code == 0
        assert 'ERROR' in result.output
        assert '33.3%' in result.output

    def test_scan_multiple_paths(self, runner, visa_file, clean_file):
        result = runner.invoke(main, ['scan', str(visa_file), str(clean_file)])
        assert result.exit_code == 0
        assert 'Files scanned:     2' in result.output

    def test_scan_missing_path_reports_error(self, runner, tmp_path):
        result = runner.invoke(main, ['scan', str(tmp_path / 'gone.txt')])
        assert result.exit_code == 0
        assert 'FileNotFoundError' in result.output

    def test_scan_empty_directory(self, runner, tmp_path):
        result = runner.invoke(main, ['scan', str(tmp_path)])
        assert result.exit_code == 0
        assert 'No files found' in result.output

    def test_json_output(self, runner, visa_file, tmp_path):
        json_file = tmp_path / 'out' / 'results.json'
        result = runner.invoke(main, ['scan', str(visa_file), '--json-out', str(json_file)])
        assert result.exit_code == 0
        data = json.loads(json_file.read_text())
        assert data['summary']['total_findings'] == 1
        assert data['files'][0]['findings'][0]['brand'] == 'Visa'

    def test_csv_output(self, runner, visa_file, tmp_path):
        csv_file = tmp_path / 'findings.csv'
        result = runner.invoke(main, ['scan', str(visa_file), '--csv-out', str(csv_file)])
        assert result.exit_code == 0
        with open(csv_file, newline='') as f:
            rows = list(csv.DictReader(f))
        assert rows[0]['masked_pan'] == '411111******1111'

    def test_pdf_output(self, runner, visa_file, tmp_path):
        pdf_file = tmp_path / 'report.pdf'
        result = runner.invoke(main, ['scan', str(visa_file), '--pdf-out', str(pdf_file)])
        assert result.exit_code == 0
        assert pdf_file.read_bytes()[:5] == b'%PDF-'

    def test_text_output(self, runner, visa_file, tmp_path):
        out = tmp_path / 'report.txt'
        result = runner.invoke(main, ['scan', str(visa_file), '-o', str(out)])
        assert result.exit_code == 0
        text = out.read_text()
        assert 'Brand: Visa' in text
        assert 'Line: 1' in text

    def test_log_file(self, runner, visa_file, tmp_path):
        log_path = tmp_path / 'scan.log'
        result = runner.invoke(main, ['scan', str(visa_file), '--log', str(log_path)])
        assert result.exit_code == 0
        content = log_path.read_text()
        assert '[INFO]' in content
        assert '[WARN]' in content

    def test_extension_filter(self, runner, scan_tree):
        result = runner.invoke(main, ['scan', str(scan_tree), '--ext', 'txt'])
        assert result.exit_code == 0
        assert 'Files scanned:     2' in result.output

    def test_fail_on_findings(self, runner, visa_file, clean_file):
        result = runner.invoke(main, ['scan', str(visa_file), '--fail-on-findings'])
        assert result.exit_code == 1
        assert 'WARNING' in result.output
        result = runner.invoke(main, ['scan', str(clean_file), '--fail-on-findings'])
        assert result.exit_code == 0

    def test_policy(self, runner, visa_file, tmp_path):
        policy = tmp_path / 'policy.json'
        policy.write_text(json.dumps({'high_threshold': 2}))
        result = runner.invoke(main, ['scan', str(visa_file), '--policy', str(policy)])
        assert result.exit_code == 0
        assert 'Medium risk (1):' in result.output

    def test_bad_policy(self, runner, visa_file, tmp_path):
        policy = tmp_path / 'policy.json'
        policy.write_text('[1, 2')
        result = runner.invoke(main, ['scan', str(visa_file), '--policy', str(policy)])
        assert result.exit_code == 2

    def test_bad_mask_char(self, runner, visa_file):
        result = runner.invoke(main, ['scan', str(visa_file), '--mask-char', 'ab'])
        assert result.exit_code == 2

    def test_mask_char_reaches_line_content(self, runner, visa_file, tmp_path):
        out = tmp_path / 'report.txt'
        csv_file = tmp_path / 'findings.csv'
        result = runner.invoke(main, ['scan', str(visa_file), '--mask-char', '#',
                                      '-o', str(out), '--csv-out', str(csv_file)])
        assert result.exit_code == 0
        text = out.read_text()
        assert 'Masked PAN: 411111######1111' in text
        assert 'Line Content: Card: 4111-11##-####-1111' in text
        assert '*' not in text
        with open(csv_file, newline='') as f:
            rows = list(csv.DictReader(f))
        assert rows[0]['masked_pan'] == '411111######1111'
        assert rows[0]['line_text'] == 'Card: 4111-11##-####-1111 exp 12/25'

    @pytest.mark.parametrize('settings', [
        {'high_threshold': None},
        {'medium_threshold': [2]},
        {'high_risk_brands': 'Visa'},
        {'high_risk_brands': [1]},
    ])
    def test_policy_with_wrong_types(self, runner, visa_file, tmp_path, settings):
        policy = tmp_path / 'policy.json'
        policy.write_text(json.dumps(settings))
        result = runner.invoke(main, ['scan', str(visa_file), '--policy', str(policy)])
        assert result.exit_code == 2
        assert 'Invalid policy file' in result.output

    def test_log_file_closed_when_report_fails(self, runner, visa_file, tmp_path,
                                               monkeypatch):
        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            f = real_open(*args, **kwargs)
            opened.append(f)
            return f

        def failing_csv(results, output_path):
            raise OSError('disk full')

        monkeypatch.setattr(cli_mod, 'open', tracking_open, raising=False)
        monkeypatch.setattr(cli_mod, 'write_csv_report', failing_csv)
        log_path = tmp_path / 'scan.log'
        result = runner.invoke(main, ['scan', str(visa_file), '--log', str(log_path),
                                      '--csv-out', str(tmp_path / 'x.csv')])
        assert result.exit_code != 0
        assert isinstance(result.exception, OSError)
        assert len(opened) == 1
        assert opened[0].closed
        assert 'Scan finished' in log_path.read_text()

    def test_requires_path(self, runner):
        result = runner.invoke(main, ['scan'])
        assert result.exit_code != 0


class TestCheckCommand:
    def test_valid(self, runner):
        result = runner.invoke(main, ['check', '4111 1111 1111 1111'])
        assert result.exit_code == 0
        assert 'passes Luhn check' in result.output
        assert 'Brand: Visa' in result.output
        assert 'BIN: 411111' in result.output
        assert '411111******1111' in result.output

    def test_invalid(self, runner):
        result = runner.invoke(main, ['check', LUHN_INVALID])
        assert result.exit_code == 1
        assert 'fails Luhn check' in result.output

    def test_no_mask(self, runner):
        result = runner.invoke(main, ['check', AMEX, '--no-mask'])
        assert result.exit_code == 0
        assert AMEX in result.output
        assert 'American Express' in result.output

    def test_length_mismatch_note(self, runner):
        result = runner.invoke(main, ['check', VISA_15_MISMATCH])
        assert result.exit_code == 0
        assert 'not standard' in result.output
