"""Tests for PricingTable and CostCalculator."""

import json

import pytest

from chat_bridge.conversation import UsageReport
from chat_bridge.cost.calculator import CostCalculator
from chat_bridge.cost.pricing import PricingTable
from chat_bridge.exceptions import PricingDataError

from conftest import FLASH_MODEL, GPT4O_MODEL, MINI_MODEL, PRO_MODEL


class TestPricingTable:
    def setup_method(self):
        self.pricing = PricingTable()

    def test_native_pro_rate(self):
        assert self.pricing.get_price_per_token(PRO_MODEL) == 0.0000035

    def test_native_default_rate(self):
        assert self.pricing.get_price_per_token(FLASH_MODEL) == 0.0000001

    def test_native_tier_is_substring_match(self):
        assert self.pricing.resolve_tier("native", "gemini-1.5-pro-002") == "pro"
        assert self.pricing.resolve_tier("native", "gemini-2.0-flash") == "default"

    def test_compatible_default_rates(self):
        assert self.pricing.get_input_price(MINI_MODEL) == 0.00015
        assert self.pricing.get_output_price(MINI_MODEL) == 0.0006

    def test_compatible_premium_rates(self):
        assert self.pricing.get_input_price(GPT4O_MODEL) == 0.005
        assert self.pricing.get_output_price(GPT4O_MODEL) == 0.015

    def test_mini_excluded_from_premium(self):
        assert self.pricing.resolve_tier("compatible", "openai/gpt-4o-mini") == "default"
        assert self.pricing.resolve_tier("compatible", "openai/gpt-4o") == "premium"

    def test_unknown_model_uses_default_tier(self):
        assert self.pricing.resolve_tier("compatible", "x-ai/grok-4.1-fast") == "default"

    def test_unknown_family_raises(self):
        with pytest.raises(PricingDataError, match="Unknown provider family"):
            self.pricing.resolve_tier("anthropic", "claude")

    def test_custom_config_path(self, tmp_path):
        custom = {
            "native": {"tiers": {"default": {"price_per_token": 0.5}}},
            "compatible": {
                "tiers": {"default": {"input_price_per_1k": 1.0, "output_price_per_1k": 2.0}}
            },
        }
        config_file = tmp_path / "pricing.json"
        config_file.write_text(json.dumps(custom))

        pricing = PricingTable(config_path=str(config_file))
        assert pricing.get_price_per_token(PRO_MODEL) == 0.5
        assert pricing.get_output_price(GPT4O_MODEL) == 2.0

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(PricingDataError, match="Failed to load"):
            PricingTable(config_path=str(tmp_path / "nope.json"))

    def test_malformed_json_raises(self, tmp_path):
        config_file = tmp_path / "pricing.json"
        config_file.write_text("{not json")
        with pytest.raises(PricingDataError):
            PricingTable(config_path=str(config_file))

    def test_missing_default_tier_raises(self, tmp_path):
        config_file = tmp_path / "pricing.json"
        config_file.write_text(json.dumps({"native": {"tiers": {}}, "compatible": {"tiers": {}}}))
        with pytest.raises(PricingDataError, match="no 'default' tier"):
            PricingTable(config_path=str(config_file))

    def test_missing_rate_field_raises(self, tmp_path):
        custom = {
            "native": {"tiers": {"default": {"price_per_token": 0.1}}},
            "compatible": {"tiers": {"default": {"input_price_per_1k": 1.0}}},
        }
        config_file = tmp_path / "pricing.json"
        config_file.write_text(json.dumps(custom))
        with pytest.raises(PricingDataError, match="output_price_per_1k"):
            PricingTable(config_path=str(config_file))


class TestCostCalculator:
    def setup_method(self):
        self.calculator = CostCalculator()

    def test_native_pro_cost(self):
        """1000 total tokens on a pro model -> 1000 * 0.0000035."""
        usage = UsageReport(prompt_tokens=600, completion_tokens=400, total_tokens=1000)
        cost = self.calculator.calculate_cost("native", PRO_MODEL, usage)
        assert cost == pytest.approx(0.0035)

    def test_native_uses_total_tokens_only(self):
        usage = UsageReport(prompt_tokens=10, completion_tokens=10, total_tokens=1000)
        cost = self.calculator.calculate_cost("native", FLASH_MODEL, usage)
        assert cost == pytest.approx(1000 * 0.0000001)

    def test_compatible_default_cost(self):
        usage = UsageReport(prompt_tokens=500, completion_tokens=100, total_tokens=600)
        cost = self.calculator.calculate_cost("compatible", MINI_MODEL, usage)
        assert cost == pytest.approx(0.000135)

    def test_compatible_premium_cost(self):
        usage = UsageReport(prompt_tokens=1000, completion_tokens=1000)
        cost = self.calculator.calculate_cost("compatible", GPT4O_MODEL, usage)
        assert cost == pytest.approx(0.005 + 0.015)

    @pytest.mark.parametrize("family,model", [
        ("native", PRO_MODEL),
        ("native", FLASH_MODEL),
        ("compatible", GPT4O_MODEL),
        ("compatible", MINI_MODEL),
    ])
    def test_empty_usage_is_free(self, family, model):
        assert self.calculator.calculate_cost(family, model, UsageReport.empty()) == 0.0

    def test_breakdown(self):
        usage = UsageReport(prompt_tokens=2000, completion_tokens=1000)
        breakdown = self.calculator.calculate_with_breakdown("compatible", GPT4O_MODEL, usage)

        assert breakdown["tier"] == "premium"
        assert breakdown["input_cost"] == pytest.approx(0.01)
        assert breakdown["output_cost"] == pytest.approx(0.015)
        assert breakdown["total_cost"] == pytest.approx(0.025)
        assert breakdown["model"] == GPT4O_MODEL

    def test_unknown_family_raises(self):
        with pytest.raises(PricingDataError):
            self.calculator.calculate_cost("local", "llama", UsageReport(total_tokens=10))
