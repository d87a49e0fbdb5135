"""Roll per-file scan results into a corpus-wide Summary.

Aggregation is a single pass over results sorted by path, so the Summary
does not depend on the order in which concurrent scans completed.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional

from panscan.brands import brand_from_name
from panscan.models import Brand, RiskTier, ScanResult, Summary

# Brands whose matches are treated as high-confidence card data
HIGH_RISK_BRANDS: FrozenSet[Brand] = frozenset({
    Brand.AMERICAN_EXPRESS,
    Brand.DISCOVER,
    Brand.MASTERCARD,
    Brand.VISA,
    Brand.UNIONPAY,
})


def _int_setting(data: dict, key: str, default: int) -> int:
    """Whole-number setting from a policy dict; rejects null, bools and lists."""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f'{key} must be a whole number, got {value!r}')
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f'{key} must be a whole number, got {value!r}')
    return int(value)


@dataclass
class RiskPolicy:
    """Thresholds that place a file into a risk tier.

    * high: at least ``high_threshold`` findings from ``high_risk_brands``
    * medium: otherwise, at least ``medium_threshold`` findings
    * low: otherwise, at least one finding
    * clean: no findings
    """

    high_risk_brands: FrozenSet[Brand] = field(default_factory=lambda: HIGH_RISK_BRANDS)
    high_threshold: int = 1
    medium_threshold: int = 1

    def __post_init__(self):
        if self.high_threshold < 1 or self.medium_threshold < 1:
            raise ValueError('Risk thresholds must be at least 1')

    @classmethod
    def default(cls) -> 'RiskPolicy':
        """Return the built-in policy."""
        return cls()

    @classmethod
    def from_json(cls, path) -> 'RiskPolicy':
        """Load a policy from a JSON file, falling back to defaults.

        JSON format::

            {
              "high_risk_brands": ["Visa", "Mastercard"],
              "high_threshold": 2,
              "medium_threshold": 1
            }

        All keys are optional. Brands may be given by display name
        ("American Express") or enum name ("AMERICAN_EXPRESS").

        Raises:
            ValueError: If the file is not valid JSON or holds bad values.
        """
        with open(str(path), 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f'Invalid policy file {path}: {e}') from e

        if not isinstance(data, dict):
            raise ValueError(f'Invalid policy file {path}: expected an object')

        policy = cls.default()
        try:
            brands = data.get('high_risk_brands')
            if brands is not None:
                if not isinstance(brands, list) or not all(isinstance(b, str) for b in brands):
                    raise ValueError('high_risk_brands must be a list of brand names')
                policy.high_risk_brands = frozenset(brand_from_name(b) for b in brands)
            policy.high_threshold = _int_setting(data, 'high_threshold', policy.high_threshold)
            policy.medium_threshold = _int_setting(data, 'medium_threshold',
                                                   policy.medium_threshold)
            policy.__post_init__()
        except ValueError as e:
            raise ValueError(f'Invalid policy file {path}: {e}') from e
        return policy

    def tier_for(self, result: ScanResult) -> RiskTier:
        """Assign a risk tier to one file's result."""
        total = len(result.findings)
        if total == 0:
            return RiskTier.CLEAN
        high = sum(1 for f in result.findings if f.brand in self.high_risk_brands)
        if high >= self.high_threshold:
            return RiskTier.HIGH
        if total >= self.medium_threshold:
            return RiskTier.MEDIUM
        return RiskTier.LOW


def aggregate(
    results: Iterable[ScanResult],
    dirs_traversed: int = 0,
    policy: Optional[RiskPolicy] = None,
) -> Summary:
    """Build a Summary from the complete set of ScanResults.

    Errored results count toward ``files_scanned`` as zero-finding files
    and are listed in ``errors``.

    Args:
        results: One ScanResult per scanned file.
        dirs_traversed: Directory count reported by the file collector.
        policy: Risk tier thresholds. None uses RiskPolicy.default().

    Returns:
        The run Summary.
    """
    policy = policy if policy is not None else RiskPolicy.default()
    ordered = sorted(results, key=lambda r: str(r.file_path))

    brand_counts: Dict[Brand, int] = {brand: 0 for brand in Brand}
    tiers: Dict[RiskTier, List[Path]] = {tier: [] for tier in RiskTier}
    errors = []
    total_bytes = 0
    total_findings = 0
    mismatches = 0

    for result in ordered:
        total_bytes += result.byte_size
        total_findings += len(result.findings)
        for f in result.findings:
            brand_counts[f.brand] += 1
            if f.length_mismatch:
                mismatches += 1
        if result.error:
            errors.append((result.file_path, result.error))
        tiers[policy.tier_for(result)].append(result.file_path)

    files_scanned = len(ordered)
    clean = len(tiers[RiskTier.CLEAN])
    clean_pct = round(clean / files_scanned * 100, 1) if files_scanned else 0.0

    return Summary(
        files_scanned=files_scanned,
        dirs_traversed=dirs_traversed,
        total_bytes=total_bytes,
        total_findings=total_findings,
        brand_counts=brand_counts,
        risk_tiers={tier: tuple(paths) for tier, paths in tiers.items()},
        clean_file_percentage=clean_pct,
        errors=tuple(errors),
        length_mismatches=mismatches,
    )
