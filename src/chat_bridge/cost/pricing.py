"""Pricing configuration loader and tier lookup."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..exceptions import PricingDataError
from ..registry import COMPATIBLE_FAMILY, NATIVE_FAMILY

DEFAULT_TIER = "default"

_REQUIRED_FIELDS = {
    NATIVE_FAMILY: ("price_per_token",),
    COMPATIBLE_FAMILY: ("input_price_per_1k", "output_price_per_1k"),
}


class PricingTable:
    """Two-tier rate tables for the native and compatible provider families.

    Loads rates from pricing.json. Each family has a "default" tier plus
    any number of named tiers selected by substring rules on the model id:
    a tier applies when every string in its "match" list occurs in the id
    and none of its "exclude" strings do. Named tiers are tried in file
    order before falling back to "default".

    These rates are a coarse approximation of upstream billing, not an
    exact reproduction of it.

    Attributes:
        _data: Raw pricing configuration data
        _tiers: Family name -> ordered tier name -> tier data
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        """Initialize PricingTable.

        Args:
            config_path: Optional path to pricing JSON file. If None, uses the
                        pricing.json bundled in the package's config directory.

        Raises:
            PricingDataError: If pricing file cannot be loaded or is malformed
        """
        if config_path is None:
            config_path = Path(__file__).parent.parent / "config" / "pricing.json"
        else:
            config_path = Path(config_path)

        try:
            with open(config_path, "r") as f:
                self._data: Dict[str, Any] = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            raise PricingDataError(f"Failed to load pricing configuration: {e}") from e

        self._tiers: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for family, required in _REQUIRED_FIELDS.items():
            tiers = self._data.get(family, {}).get("tiers", {})
            if DEFAULT_TIER not in tiers:
                raise PricingDataError(
                    f"Pricing configuration for '{family}' has no '{DEFAULT_TIER}' tier"
                )
            for name, tier_data in tiers.items():
                missing = [key for key in required if key not in tier_data]
                if missing:
                    raise PricingDataError(
                        f"Tier '{name}' of '{family}' is missing: {', '.join(missing)}"
                    )
            self._tiers[family] = tiers

    def _family_tiers(self, family: str) -> Dict[str, Dict[str, Any]]:
        if family not in self._tiers:
            raise PricingDataError(
                f"Unknown provider family '{family}'. "
                f"Available: {', '.join(sorted(self._tiers))}"
            )
        return self._tiers[family]

    def resolve_tier(self, family: str, model: str) -> str:
        """Pick the tier name that applies to a model id.

        Args:
            family: "native" or "compatible"
            model: Model id as sent upstream

        Returns:
            Name of the first matching named tier, or "default"
        """
        for name, tier_data in self._family_tiers(family).items():
            if name == DEFAULT_TIER:
                continue
            match: List[str] = tier_data.get("match", [])
            exclude: List[str] = tier_data.get("exclude", [])
            if match and all(s in model for s in match) and not any(s in model for s in exclude):
                return name
        return DEFAULT_TIER

    def _tier_data(self, family: str, model: str) -> Dict[str, Any]:
        return self._family_tiers(family)[self.resolve_tier(family, model)]

    def get_price_per_token(self, model: str) -> float:
        """Get the flat per-token price (prompt + completion) for a native model."""
        return float(self._tier_data(NATIVE_FAMILY, model)["price_per_token"])

    def get_input_price(self, model: str) -> float:
        """Get input token price for a compatible model in USD per 1,000 tokens."""
        return float(self._tier_data(COMPATIBLE_FAMILY, model)["input_price_per_1k"])

    def get_output_price(self, model: str) -> float:
        """Get output token price for a compatible model in USD per 1,000 tokens."""
        return float(self._tier_data(COMPATIBLE_FAMILY, model)["output_price_per_1k"])
