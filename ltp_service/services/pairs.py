from __future__ import annotations

from typing import List


DEFAULT_CURRENCIES: tuple[str, ...] = ("USD", "EUR", "CHF")


def split_pairs(value: str) -> List[str]:
    items = [x.strip() for x in value.split(",")]
    return [x for x in items if x]


def extract_currency(token: str) -> str | None:
    """
    Return the quote currency of a ``BASE/QUOTE`` token.

    Everything after the first ``/`` is the currency.  Tokens without a ``/``
    or with nothing after it yield ``None``.
    """
    _, sep, quote = token.partition("/")
    if not sep or not quote:
        return None
    return quote


def resolve_currencies(pairs_param: str | None) -> List[str]:
    """
    Turn the raw ``pairs`` query value into an ordered currency list.

    Absent or empty input gives the default list.  Malformed tokens are
    dropped without trace; duplicates are kept.
    """
    if not pairs_param:
        return list(DEFAULT_CURRENCIES)

    currencies: List[str] = []
    for token in split_pairs(pairs_param):
        currency = extract_currency(token)
        if currency is not None:
            currencies.append(currency)
    return currencies


def format_pair(base: str, currency: str) -> str:
    return f"{base}/{currency}"
