"""Shared test fixtures -- well-known test card numbers and synthetic text files."""

import pytest

# Published test numbers; all pass the Luhn check
VISA = '4111111111111111'
VISA_13 = '4222222222222'
VISA_15_MISMATCH = '411111111111116'
MASTERCARD = '5555555555554444'
MASTERCARD_2_SERIES = '2221000000000009'
AMEX = '378282246310005'
DISCOVER = '6011111111111117'
JCB = '3530111333300000'
DINERS = '30569309025904'
UNIONPAY = '6200000000000005'
UNKNOWN = '1234567812345670'

LUHN_INVALID = '4111111111111112'


@pytest.fixture
def make_file(tmp_path):
    """Factory writing text (or raw bytes) to a file under tmp_path."""
    def _make(name, content):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')
        return path
    return _make


@pytest.fixture
def visa_file(make_file):
    """Single-line file holding one hyphenated Visa number."""
    return make_file('card.txt', 'Card: 4111-1111-1111-1111 exp 12/25\n')


@pytest.fixture
def clean_file(make_file):
    """File with digits but no card numbers."""
    return make_file('clean.txt', 'Order 12345 shipped on 2024-06-15\nTotal: 99.95\n')


@pytest.fixture
def undecodable_file(make_file):
    """File that is not valid UTF-8."""
    return make_file('binary.dat', b'\xff\xfe\x00\x81 4111111111111111\n')


@pytest.fixture
def scan_tree(tmp_path, make_file):
    """Directory with two Visa files and one unreadable file."""
    make_file('tree/a.txt', f'first {VISA}\n')
    make_file('tree/sub/b.txt', f'second\n{VISA}\n')
    make_file('tree/sub/c.bin', b'\xff\xff\xff\xff')
    return tmp_path / 'tree'
