"""Display formatting shared by the analytics routines. Output is for text only."""

DEFAULT_CURRENCY = "€"


def format_currency(amount: float, symbol: str = DEFAULT_CURRENCY) -> str:
    """Whole currency units with thousands separators, e.g. '€12,345' or '-€80'."""
    rounded = round(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.0f}"


def format_percent(fraction: float) -> str:
    """A rate in [0, 1] as 'NN.N%'."""
    return f"{fraction * 100:.1f}%"


def format_change(pct: float) -> str:
    """A signed percentage-point change, e.g. '+4.4%' or '-23.0%'."""
    return f"{pct:+.1f}%"
