"""Card brand classification from issuer prefix and length.

Rules are evaluated top to bottom and the first prefix match wins, so the
more specific prefixes sit above the broad ones (Discover's ``644``-``649``
before anything that could claim a leading ``6``, every brand before
Visa's single ``4``).
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from panscan.models import Brand, Classification

BIN_LENGTH = 6
LAST_FOUR_LENGTH = 4


@dataclass(frozen=True)
class BrandRule:
    """Prefix ranges and allowed lengths for one brand.

    Each prefix range is ``(low, high)`` as strings of equal width; a number
    matches when its leading digits of that width fall within the range.
    """
    brand: Brand
    prefixes: Tuple[Tuple[str, str], ...]
    lengths: FrozenSet[int]

    def matches_prefix(self, digits: str) -> bool:
        for low, high in self.prefixes:
            head = digits[:len(low)]
            if len(head) == len(low) and low <= head <= high:
                return True
        return False


BRAND_RULES: Tuple[BrandRule, ...] = (
    BrandRule(Brand.AMERICAN_EXPRESS,
              (('34', '34'), ('37', '37')),
              frozenset({15})),
    BrandRule(Brand.DINERS_CLUB,
              (('300', '305'), ('36', '36'), ('38', '38')),
              frozenset({14})),
    BrandRule(Brand.DISCOVER,
              (('6011', '6011'), ('65', '65'), ('644', '649')),
              frozenset({16})),
    BrandRule(Brand.JCB,
              (('3528', '3589'),),
              frozenset({16})),
    BrandRule(Brand.UNIONPAY,
              (('62', '62'),),
              frozenset(range(16, 20))),
    BrandRule(Brand.MASTERCARD,
              (('51', '55'), ('2221', '2720')),
              frozenset({16})),
    BrandRule(Brand.VISA,
              (('4', '4'),),
              frozenset({13, 16, 19})),
)


def find_rule(digits: str) -> Optional[BrandRule]:
    """Return the first rule whose prefix matches, or None."""
    for rule in BRAND_RULES:
        if rule.matches_prefix(digits):
            return rule
    return None


def classify(digits: str) -> Classification:
    """Classify a Luhn-valid digit string by brand.

    A prefix match with a length outside the brand's set keeps the brand
    and flags ``length_mismatch``.
    """
    rule = find_rule(digits)
    if rule is None:
        brand, mismatch = Brand.UNKNOWN, False
    else:
        brand, mismatch = rule.brand, len(digits) not in rule.lengths
    return Classification(
        brand=brand,
        bin=digits[:BIN_LENGTH],
        last_four=digits[-LAST_FOUR_LENGTH:],
        length_mismatch=mismatch,
    )


def brand_from_name(name: str) -> Brand:
    """Look up a Brand by display name or enum name, case-insensitively.

    Raises:
        ValueError: If no brand matches.
    """
    key = name.strip().lower().replace('_', ' ')
    for brand in Brand:
        if key in (brand.value.lower(), brand.name.lower().replace('_', ' '),
                   brand.value.lower().replace(' ', '')):
            return brand
    raise ValueError(f'Unknown card brand: {name!r}')
