"""Luhn (mod 10) checksum validation."""


def luhn_checksum(digits: str) -> int:
    """Return the Luhn sum of an ASCII digit string.

    Every second digit from the right is doubled; doubled values of 10 or
    more have 9 subtracted.
    """
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = ord(ch) - 48
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total


def is_luhn_valid(digits: str) -> bool:
    """True if ``digits`` is a non-empty ASCII digit string passing Luhn."""
    if not digits or not digits.isascii() or not digits.isdigit():
        return False
    return luhn_checksum(digits) % 10 == 0
