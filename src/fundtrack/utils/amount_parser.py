"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

_CURRENCY = re.compile(r"^(KSHS|KSH|KES|USD|EUR|GBP)\.?\s*|[$€£¥]", re.IGNORECASE)


def parse_amount(amount_str: str, allow_zero: bool = False) -> Decimal:
    """Parse a money amount into a Decimal rounded to cents.

    Accepts "1234.50", "1,234.50", "KES 1,234.50", "KSh1234" and "$12.00".
    Ledger amounts are always positive, so signs and parentheses are
    rejected. Zero is accepted only with ``allow_zero``, for opening balances.

    Raises:
        ValueError: If the string is empty, malformed, or not positive
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = _CURRENCY.sub("", amount_str.strip()).replace(",", "").strip()
    if cleaned.startswith(("-", "(", "+")):
        raise ValueError(f"Amount must be positive: '{amount_str}'")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")

    amount = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValueError(f"Amount must be positive: '{amount_str}'")
    return amount
