"""
Pytest fixtures and configuration.

- Fixtures provide realistic policy text
- The OpenAI client is the only thing mocked; SQLite runs for real in tmp_path
- Each test should be independent and fast
"""
import json
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

from policy_core.analysis.llm import PolicyLLMClient
from policy_core.db.store import init_database
from policy_core.usage.quota import QuotaTracker

load_dotenv()


# =============================================================================
# SAMPLE POLICY FIXTURES
# =============================================================================

@pytest.fixture
def remote_work_policy() -> dict[str, str]:
    """Security-heavy policy with three distinct risk keywords."""
    return {
        "title": "Remote Work Guideline",
        "content": (
            "Employees must connect through the company VPN when working remotely. "
            "Confidential documents must not be stored on personal devices. "
            "Password rotation is required every 90 days."
        ),
    }


@pytest.fixture
def plain_policy() -> dict[str, str]:
    """Policy text with no category or risk keywords."""
    return {
        "title": "Kitchen Etiquette",
        "content": "Please keep the shared kitchen tidy. Wash your own cups after use.",
    }


@pytest.fixture
def valid_structure_response() -> dict[str, Any]:
    """Structuring reply that fills every field."""
    return {
        "category": "Security Policy",
        "policyType": "Guideline",
        "keyPoints": ["Use VPN remotely", "No confidential files on personal devices", "Rotate passwords"],
        "tags": ["remote", "vpn", "security"],
        "businessArea": "IT",
        "compliance": {"isRequired": True, "checkpoints": ["Quarterly VPN audit"]},
        "summary": "Remote staff must use VPN and protect confidential data.",
        "riskLevel": "High",
        "targetAudience": ["Remote employees"],
        "effectiveScope": "All remote work",
    }


# =============================================================================
# MOCK OPENAI CLIENT
# =============================================================================

def _completion(content: str | None, prompt_tokens: int = 40, completion_tokens: int = 20) -> MagicMock:
    """Chat completion response shaped like openai's ChatCompletion."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.prompt_tokens = prompt_tokens
    response.usage.completion_tokens = completion_tokens
    response.usage.total_tokens = prompt_tokens + completion_tokens
    return response


def _answer(reply: Any) -> MagicMock:
    if isinstance(reply, BaseException):
        raise reply
    return _completion(reply)


@pytest.fixture
def mock_openai_client():
    """
    Build an AsyncOpenAI stand-in that gives the same answer to every call.

    The reply is a str (message content), None (empty reply) or an exception
    instance (raised from chat.completions.create).
    """
    def _factory(reply: Any) -> MagicMock:
        client = MagicMock()

        async def create(**kwargs):
            return _answer(reply)

        client.chat.completions.create = AsyncMock(side_effect=create)
        return client
    return _factory


@pytest.fixture
def routed_openai_client():
    """
    Build an AsyncOpenAI stand-in that answers by task.

    Structure, summary and tag requests are told apart by their system
    prompt, so the answer does not depend on the order gather() starts them.
    """
    def _factory(structure: Any = None, summary: Any = None, tags: Any = None) -> MagicMock:
        client = MagicMock()

        async def create(**kwargs):
            messages = kwargs["messages"]
            system = messages[0]["content"] if messages[0]["role"] == "system" else ""
            if "structured JSON" in system:
                return _answer(structure)
            if "summarize" in system:
                return _answer(summary)
            return _answer(tags)

        client.chat.completions.create = AsyncMock(side_effect=create)
        return client
    return _factory


@pytest.fixture
def fixed_quota():
    """Quota tracker on a controllable clock: set fixed_quota.clock["today"] to move days."""
    clock = {"today": date(2026, 3, 1)}
    quota = QuotaTracker(daily_limit=10, today=lambda: clock["today"])
    quota.clock = clock
    return quota


@pytest.fixture
def llm_factory(fixed_quota):
    """Build a PolicyLLMClient around a mocked provider client."""
    def _factory(client, quota=None, timeout=20.0):
        return PolicyLLMClient(
            api_key="test-key",
            quota=quota or fixed_quota,
            client=client,
            timeout=timeout,
        )
    return _factory


@pytest.fixture
def structure_json(valid_structure_response) -> str:
    return json.dumps(valid_structure_response)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "policies.db")


@pytest.fixture
def db_conn(db_path):
    conn = init_database(db_path)
    yield conn
    conn.close()
