from __future__ import annotations

from typing import List

from pydantic import BaseModel


class PairPrice(BaseModel):
    """Last traded price of one pair."""

    pair: str
    amount: float


class LTPResponse(BaseModel):
    ltp: List[PairPrice]
