"""Exception hierarchy for the FinEdu domain."""

from __future__ import annotations


class FinEduError(Exception):
    """Base class for all FinEdu domain failures."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FinEduError):
    """Product, portfolio, holding or lesson does not exist."""

    code = "not_found"


class ProductInactiveError(FinEduError):
    """Product exists but is not tradeable."""

    code = "inactive"


class BelowMinimumError(FinEduError):
    """Order amount is under the product minimum."""

    code = "below_minimum"


class InsufficientBalanceError(FinEduError):
    """Order amount exceeds the cash balance."""

    code = "insufficient_balance"


class InsufficientUnitsError(FinEduError):
    """Sell request exceeds the units held."""

    code = "insufficient_units"


class InvalidOrderError(FinEduError):
    """Order parameters are malformed (non-positive amount or units)."""

    code = "invalid_order"


class InvalidMarketConfigError(FinEduError):
    """Market simulator configuration value is out of range."""

    code = "invalid_market_config"


class ProductInUseError(FinEduError):
    """Product cannot be deleted while transactions reference it."""

    code = "product_in_use"


class DuplicateWatchlistError(FinEduError):
    """Product is already on the user's watchlist."""

    code = "duplicate_watchlist"
