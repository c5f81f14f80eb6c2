"""Cost calculation from reported token usage."""

from typing import Any, Dict, Optional

from ..conversation import UsageReport
from ..registry import NATIVE_FAMILY
from .pricing import PricingTable


class CostCalculator:
    """Maps (family, model id, usage) to an estimated cost in USD.

    Pure and side-effect free: no network access, no state beyond the
    pricing table it was built with.

    Native family:      total_tokens * price_per_token
    Compatible family:  prompt_tokens / 1000 * input_price
                        + completion_tokens / 1000 * output_price

    Attributes:
        _pricing: PricingTable instance for looking up tier rates
    """

    def __init__(self, pricing_table: Optional[PricingTable] = None) -> None:
        """Initialize CostCalculator.

        Args:
            pricing_table: PricingTable with the rate tiers. Defaults to the
                          bundled pricing.json.
        """
        self._pricing = pricing_table if pricing_table is not None else PricingTable()

    @property
    def pricing(self) -> PricingTable:
        return self._pricing

    def calculate_cost(self, family: str, model: str, usage: UsageReport) -> float:
        """Calculate the cost of one call.

        Args:
            family: "native" or "compatible"
            model: Model id the call was made with
            usage: Token usage reported upstream (all zero when omitted)

        Returns:
            Non-negative cost in USD; 0.0 when usage is empty

        Raises:
            PricingDataError: If the family is unknown
        """
        return self.calculate_with_breakdown(family, model, usage)["total_cost"]

    def calculate_with_breakdown(self, family: str, model: str, usage: UsageReport) -> Dict[str, Any]:
        """Calculate cost with detailed breakdown.

        Returns:
            Dictionary with:
                - total_cost: Total estimated cost in USD
                - input_cost / output_cost: Per-direction cost (compatible only;
                  the native family bills a single flat rate, reported as input)
                - tier: Pricing tier that was applied
                - family, model: Echo of the inputs
        """
        tier = self._pricing.resolve_tier(family, model)

        if family == NATIVE_FAMILY:
            input_cost = usage.total_tokens * self._pricing.get_price_per_token(model)
            output_cost = 0.0
        else:
            input_cost = (usage.prompt_tokens / 1000.0) * self._pricing.get_input_price(model)
            output_cost = (usage.completion_tokens / 1000.0) * self._pricing.get_output_price(model)

        return {
            "total_cost": max(0.0, input_cost + output_cost),
            "input_cost": input_cost,
            "output_cost": output_cost,
            "tier": tier,
            "family": family,
            "model": model,
        }
