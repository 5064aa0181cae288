from __future__ import annotations

from typing import Any


class QuoteError(RuntimeError):
    """Base class for a failed single-pair price fetch."""

    kind = "quote_error"

    def __init__(
        self,
        message: str,
        *,
        pair: str | None = None,
        status_code: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.pair = pair
        self.status_code = status_code
        self.payload = payload


class TransportError(QuoteError):
    """The request could not be completed (network failure, timeout, HTTP error status)."""

    kind = "transport"


class ProtocolError(QuoteError):
    """The response body could not be parsed into the expected schema."""

    kind = "protocol"


class UpstreamRejected(QuoteError):
    """The provider's payload reported an error condition."""

    kind = "upstream_rejected"


class NoData(QuoteError):
    """The provider returned a well-formed but empty result set."""

    kind = "no_data"


__all__ = ["QuoteError", "TransportError", "ProtocolError", "UpstreamRejected", "NoData"]
