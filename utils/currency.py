from decimal import Decimal

from utils.constants import INCOME


def format_currency(amount: Decimal | float, symbol: str = "$") -> str:
    """Format an amount as currency string, e.g. '$1,234.56'."""
    return f"{symbol}{amount:,.2f}"


def format_signed(amount: Decimal | float, symbol: str = "$") -> str:
    """Format with +/- sign."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_transaction_amount(type_: str, amount: Decimal, symbol: str = "$") -> str:
    """Income shows as '+$12.00', expense as '-$12.00'."""
    sign = "+" if type_ == INCOME else "-"
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"
