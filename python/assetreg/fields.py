"""Syntactic checks for issuer-chosen asset fields."""
from typing import Optional

from .errors import InvalidName, InvalidTicker, PrecisionOutOfRange
from .types import AssetFields, FieldRules

DEFAULT_RULES = FieldRules()


def validate_fields(fields: AssetFields, rules: Optional[FieldRules] = None) -> None:
    """Check name, then ticker, then precision. The first violation is raised."""
    rules = rules or DEFAULT_RULES

    if not rules.name_pattern.fullmatch(fields.name):
        raise InvalidName(f"invalid name: {fields.name!r}")

    if fields.ticker is not None and not rules.ticker_pattern.fullmatch(fields.ticker):
        raise InvalidTicker(f"invalid ticker: {fields.ticker!r}")

    if fields.precision is not None and not 0 <= fields.precision <= rules.max_precision:
        raise PrecisionOutOfRange(
            f"precision out of range: {fields.precision} not in 0..{rules.max_precision}"
        )
