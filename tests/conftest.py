"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, Mock

import pytest

from chat_bridge.cost.calculator import CostCalculator
from chat_bridge.registry import ModelRegistry

PRO_MODEL = "gemini-3-pro-preview"
FLASH_MODEL = "gemini-3-flash-preview"
MINI_MODEL = "openai/gpt-4o-mini"
GPT4O_MODEL = "openai/gpt-4o-2024-08-06"


def make_google_response(text="ok", prompt_tokens=0, candidates_tokens=0, total_tokens=None):
    resp = Mock()
    resp.text = text
    resp.usage_metadata = Mock()
    resp.usage_metadata.prompt_token_count = prompt_tokens
    resp.usage_metadata.candidates_token_count = candidates_tokens
    resp.usage_metadata.total_token_count = (
        prompt_tokens + candidates_tokens if total_tokens is None else total_tokens
    )
    return resp


def make_google_factory(response=None, side_effect=None):
    """Client factory returning a mock google.genai.Client.

    The factory itself is a Mock so tests can assert on the API key it
    was called with; the async generate_content lives at
    factory.return_value.aio.models.generate_content.
    """
    client = Mock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return Mock(return_value=client)


def make_openai_response(content="ok", prompt_tokens=None, completion_tokens=None):
    resp = Mock()
    resp.choices = [Mock()]
    resp.choices[0].message = Mock()
    resp.choices[0].message.content = content
    if prompt_tokens is None and completion_tokens is None:
        resp.usage = None
    else:
        resp.usage = Mock()
        resp.usage.prompt_tokens = prompt_tokens or 0
        resp.usage.completion_tokens = completion_tokens or 0
        resp.usage.total_tokens = (prompt_tokens or 0) + (completion_tokens or 0)
    return resp


def make_openai_factory(response=None, side_effect=None):
    client = Mock()
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=side_effect)
    return Mock(return_value=client)


@pytest.fixture
def registry():
    return ModelRegistry()


@pytest.fixture
def calculator():
    return CostCalculator()
