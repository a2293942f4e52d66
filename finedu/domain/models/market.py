"""
DOMAIN MODELS: MARKET SIMULATOR CONFIGURATION

Immutable simulator parameters plus range validation for admin overrides.
No database access.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping

from finedu.domain.errors import InvalidMarketConfigError
from finedu.domain.models.entities import ProductCategory, RiskLevel

SECONDS_PER_YEAR = 365 * 24 * 60 * 60

MIN_INTERVAL_MS = 1_000
MAX_INTERVAL_MS = 300_000

FACTOR_KEYS = (
    "market_trend_factor",
    "random_factor",
    "mean_reversion_factor",
    "min_price_floor",
)
CONFIG_KEYS = ("risk_volatility", "type_volatility", "simulation_interval_ms") + FACTOR_KEYS


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_mapping(key: str, value: Any, members, upper: float) -> Dict[str, float]:
    if not isinstance(value, Mapping):
        raise InvalidMarketConfigError(f"{key} must be an object")
    result = {}
    for member in members:
        level = value.get(member.value)
        if not _is_number(level) or level < 0 or level > upper:
            raise InvalidMarketConfigError(
                f"Invalid {key.replace('_', ' ')} for {member.value}. Must be between 0 and {upper:g}"
            )
        result[member.value] = float(level)
    return result


def validate_config_value(key: str, value: Any) -> Any:
    """
    Validate a single configuration entry and return its normalized value.

    Raises:
        InvalidMarketConfigError: unknown key or value out of range
    """
    if key == "risk_volatility":
        return _validate_mapping(key, value, RiskLevel, 1.0)
    if key == "type_volatility":
        return _validate_mapping(key, value, ProductCategory, 5.0)
    if key in FACTOR_KEYS:
        if not _is_number(value) or value < 0 or value > 1:
            raise InvalidMarketConfigError(f"{key} must be a number between 0 and 1")
        return float(value)
    if key == "simulation_interval_ms":
        if not _is_number(value) or value < MIN_INTERVAL_MS or value > MAX_INTERVAL_MS:
            raise InvalidMarketConfigError(
                f"Simulation interval must be between {MIN_INTERVAL_MS} and {MAX_INTERVAL_MS} ms"
            )
        return int(value)
    raise InvalidMarketConfigError(f"Unknown configuration key: {key}")


def validate_config(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate every entry of a partial configuration document."""
    if not values:
        raise InvalidMarketConfigError("Configuration data is required")
    return {key: validate_config_value(key, value) for key, value in values.items()}


@dataclass(frozen=True)
class MarketConfig:
    """Market simulator parameters"""
    risk_volatility: Dict[str, float] = field(default_factory=dict)
    type_volatility: Dict[str, float] = field(default_factory=dict)
    market_trend_factor: float = 0.7
    random_factor: float = 0.3
    mean_reversion_factor: float = 0.1
    min_price_floor: float = 0.05
    simulation_interval_ms: int = 10_000

    @property
    def intervals_per_year(self) -> float:
        return SECONDS_PER_YEAR / (self.simulation_interval_ms / 1000)

    def volatility_for(self, risk_level: RiskLevel, category: ProductCategory) -> float:
        base = self.risk_volatility.get(risk_level.value, 0.001)
        multiplier = self.type_volatility.get(category.value, 1.0)
        return base * multiplier

    def with_overrides(self, overrides: Mapping[str, Any]) -> "MarketConfig":
        if not overrides:
            return self
        return replace(self, **validate_config(overrides))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarketConfig":
        missing = [key for key in CONFIG_KEYS if key not in data]
        if missing:
            raise InvalidMarketConfigError(f"Market config is missing: {', '.join(missing)}")
        return cls(**validate_config({key: data[key] for key in CONFIG_KEYS}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_volatility": dict(self.risk_volatility),
            "type_volatility": dict(self.type_volatility),
            "market_trend_factor": self.market_trend_factor,
            "random_factor": self.random_factor,
            "mean_reversion_factor": self.mean_reversion_factor,
            "min_price_floor": self.min_price_floor,
            "simulation_interval_ms": self.simulation_interval_ms,
        }
