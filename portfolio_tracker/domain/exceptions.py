"""
Domain errors raised by price providers and the valuation engine.
"""

from typing import Optional


class PortfolioError(RuntimeError):
    """Base class for portfolio computation failures"""


class DataUnavailable(PortfolioError):
    """A price provider had no usable data for an asset/window"""

    def __init__(self, asset: str, reason: str):
        self.asset = asset
        self.reason = reason
        super().__init__(f"Price data unavailable for {asset}: {reason}")


class RateUnavailable(PortfolioError):
    """The FX source was unreachable or returned a malformed payload"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"USD/ILS rate unavailable: {reason}")


class ValuationFailed(PortfolioError):
    """Wraps the first failure raised while fetching valuation inputs"""

    def __init__(self, cause: Optional[BaseException]):
        self.cause = cause
        super().__init__(f"Portfolio valuation failed: {cause}")
