"""
Display formatting for local-currency amounts and percentages.

Amounts are written in Korean units: 억 (10^8), 천만 (10^7) and 만 (10^4).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]

EOK = 100_000_000
CHEONMAN = 10_000_000
MAN = 10_000


def _to_decimal(amount: Number) -> Decimal:
    return amount if isinstance(amount, Decimal) else Decimal(str(amount))


def _fixed(value: Decimal, decimals: int) -> str:
    quantum = Decimal(1).scaleb(-decimals)
    return f"{value.quantize(quantum, rounding=ROUND_HALF_UP)}"


def format_korean_currency(amount: Number) -> str:
    """
    Amount in the two largest Korean units, e.g. 123_450_000 -> "1억 2천만원".

    Amounts below 1만 are shown as "1만원" so a non-zero balance never reads
    as zero.
    """
    value = _to_decimal(amount)
    if value == 0:
        return "0원"

    whole = int(abs(value))
    eok, remainder = divmod(whole, EOK)
    cheonman, remainder = divmod(remainder, CHEONMAN)
    man = remainder // MAN

    if eok > 0:
        result = f"{eok}억"
        if cheonman > 0:
            result += f" {cheonman}천만"
        elif man > 0:
            result += f" {man}만"
    elif cheonman > 0:
        result = f"{cheonman}천만"
        if man > 0:
            result += f" {man}만"
    elif man > 0:
        result = f"{man}만"
    else:
        result = "1만"

    result += "원"
    return f"-{result}" if value < 0 else result


def format_chart_currency(amount: Number) -> str:
    """Short axis label: "1.2억", "35만", "5천"."""
    value = _to_decimal(amount)
    sign = "-" if value < 0 else ""
    absolute = abs(value)

    if absolute >= EOK:
        scaled = absolute / EOK
        return f"{sign}{_fixed(scaled, 0 if scaled >= 10 else 1)}억"
    if absolute >= MAN:
        scaled = absolute / MAN
        return f"{sign}{_fixed(scaled, 0 if scaled >= 10 else 1)}만"
    return f"{sign}{_fixed(absolute / 1000, 0)}천"


def format_number(amount: Number) -> str:
    """Thousands-separated integer."""
    return f"{int(_to_decimal(amount)):,}"


def format_percentage(value: Number, decimals: int = 2) -> str:
    """Signed percentage, e.g. "+12.50%" or "-3.10%"; zero reads "+0.00%"."""
    number = _to_decimal(value)
    return f"{'+' if number >= 0 else ''}{_fixed(number, decimals)}%"
