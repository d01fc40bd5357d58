from datetime import date, datetime


def format_currency(amount: float, currency: str = "MYR") -> str:
    """Format an amount as "MYR 5,000.00"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency} {abs(amount):,.2f}"


def format_currency_compact(amount: float, currency: str = "MYR") -> str:
    """Short form for large amounts, e.g. "MYR 1.5M" or "MYR 12.0K"."""
    if amount >= 1_000_000:
        return f"{currency} {amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"{currency} {amount / 1_000:.1f}K"
    return format_currency(amount, currency)


def format_date(value: str, date_format: str = "DD/MM/YYYY") -> str:
    """
    Render an ISO date or timestamp in one of the supported display formats.

    Returns an empty string for blank or unparseable input.
    """
    if not value:
        return ""
    try:
        if "T" in value:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        else:
            parsed = date.fromisoformat(value[:10])
    except ValueError:
        return ""

    dd, mm, yyyy = f"{parsed.day:02d}", f"{parsed.month:02d}", f"{parsed.year:04d}"
    if date_format == "MM/DD/YYYY":
        return f"{mm}/{dd}/{yyyy}"
    if date_format == "YYYY-MM-DD":
        return f"{yyyy}-{mm}-{dd}"
    return f"{dd}/{mm}/{yyyy}"
