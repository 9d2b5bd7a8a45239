from __future__ import annotations

import re
from typing import NamedTuple

CURRENCY_OPTIONS: tuple[str, ...] = (
    "USD",
    "EUR",
    "GBP",
    "TRY",
    "CAD",
    "AUD",
    "CHF",
    "JPY",
    "CNY",
    "INR",
    "SEK",
    "NOK",
    "DKK",
    "PLN",
    "CZK",
    "HUF",
    "RON",
    "BRL",
    "MXN",
    "SGD",
    "HKD",
    "NZD",
    "ZAR",
    "AED",
    "SAR",
)
DEFAULT_CURRENCY = "USD"

_CURRENCY_PATTERN = re.compile(r"\b(" + "|".join(CURRENCY_OPTIONS) + r")\b")
_NUMBER_PATTERN = re.compile(r"\d[\d,.]*")


class SalaryExpectation(NamedTuple):
    currency: str
    amount: str


def extract_currency(raw: str | None, default: str = DEFAULT_CURRENCY) -> str:
    if not raw:
        return default
    match = _CURRENCY_PATTERN.search(raw)
    if match:
        return match.group(1)
    if "$" in raw:
        return "USD"
    lowered = raw.lower()
    if "tl" in lowered or "try" in lowered:
        return "TRY"
    return default


def extract_amounts(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [token.replace(",", "") for token in _NUMBER_PATTERN.findall(raw)]


def parse_salary_expectation(raw: str | None, default_currency: str = DEFAULT_CURRENCY) -> SalaryExpectation:
    amounts = extract_amounts(raw)
    return SalaryExpectation(
        currency=extract_currency(raw, default_currency),
        amount=amounts[0] if amounts else "",
    )


def format_salary_expectation(currency: str, amount: str) -> str:
    if not amount:
        return ""
    return f"{currency} {amount}"
