"""
Amount and description rules for budget transactions.

Money is always ``decimal.Decimal`` with two places. Floats are converted
through their shortest repr so ``250.5`` stays ``250.50`` and never picks
up binary noise.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from budget_ledger.app.core.exceptions import InvalidAmountError, InvalidDescriptionError

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Coerce a stored or computed value to a two-place Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(TWO_PLACES)


def parse_amount(value: Any, ceiling: Decimal) -> Decimal:
    """
    Validate a transaction amount.

    Rules, in order:
    - present and numeric (str, int, float or Decimal; never bool)
    - finite and strictly positive
    - not above ``ceiling``
    - at most two decimal places

    Returns:
        The amount quantized to two places

    Raises:
        InvalidAmountError: with a message suitable for the amount field
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError("Amount is required")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidAmountError("Amount is required")
    elif isinstance(value, float):
        value = repr(value)
    elif not isinstance(value, (int, Decimal)):
        raise InvalidAmountError("Amount must be a number")

    try:
        amount = Decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidAmountError("Amount must be a number")

    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a number")
    if amount <= 0:
        raise InvalidAmountError("Amount must be positive")
    if amount > ceiling:
        raise InvalidAmountError("Amount too large")
    if amount != amount.quantize(TWO_PLACES):
        raise InvalidAmountError("Amount can have at most 2 decimal places")

    return amount.quantize(TWO_PLACES)


def normalize_description(value: Optional[str], max_length: int) -> Optional[str]:
    """
    Trim a description; blank becomes None.

    Raises:
        InvalidDescriptionError: when longer than ``max_length`` after trimming
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidDescriptionError("Description must be text")

    description = value.strip()
    if not description:
        return None
    if len(description) > max_length:
        raise InvalidDescriptionError(f"Description must be at most {max_length} characters")
    return description
