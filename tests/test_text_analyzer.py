"""
Tests for the rule-based analyzer.

The analyzer is the floor every degraded request lands on, so it must return
a fully populated result for any input and be deterministic.
"""
import pytest

from policy_core.analysis.config import AnalysisConfig
from policy_core.analysis.text_analyzer import (
    DEFAULT_CATEGORY,
    DEFAULT_KEY_POINT,
    DEFAULT_TAGS,
    HIGH_RISK_CHECKPOINTS,
    STANDARD_CHECKPOINTS,
    analyze,
    assess_risk,
    count_risk_keywords,
    detect_category,
    extract_key_points,
    extract_keyword_tags,
    extract_local_tags,
)
from policy_core.models import RiskLevel


@pytest.mark.parametrize("content,title", [(None, None), ("", ""), ("   ", None)])
def test_empty_input_yields_complete_defaults(content, title):
    """No input must still produce every field."""
    result = analyze(content, title)

    assert result.category == DEFAULT_CATEGORY
    assert result.tags == DEFAULT_TAGS
    assert result.key_points == [DEFAULT_KEY_POINT]
    assert result.risk_level == RiskLevel.LOW
    assert result.compliance.required is False
    assert result.summary.startswith("This policy is a policy")
    assert result.target_audience == ["All employees"]
    assert result.effective_scope == "Company-wide"


def test_category_follows_highest_keyword_score():
    content = "Access requires authentication and a strong password. New hiring follows HR rules."
    assert detect_category(content, "") == "Security Policy"


def test_category_is_deterministic():
    content = "Budget approval process for training expenses"
    results = {detect_category(content, "Spending") for _ in range(5)}
    assert len(results) == 1


def test_category_tie_goes_to_first_table_entry():
    # "system" scores once for both Operations and Technology
    assert detect_category("The system", "") == "Operations Policy"


def test_no_category_hits_uses_default(plain_policy):
    assert detect_category(plain_policy["content"], plain_policy["title"]) == DEFAULT_CATEGORY


@pytest.mark.parametrize("content,expected", [
    ("This is a friendly reminder.", RiskLevel.LOW),
    ("This data is confidential.", RiskLevel.MEDIUM),
    ("Critical and mandatory: access is restricted.", RiskLevel.HIGH),
])
def test_risk_tiers(content, expected):
    assert assess_risk(content) == expected


def test_risk_counts_presence_not_frequency():
    assert count_risk_keywords("risk risk risk risk") == 1


def test_tags_capped_at_five():
    content = "security encryption access permission authentication firewall virus password"
    tags = extract_keyword_tags(content)
    assert tags == ["security", "encryption", "access", "permission", "authentication"]


def test_key_points_keep_long_sentences_only():
    content = "Short. This sentence is long enough to keep! Tiny? Another qualifying sentence here. A third qualifying sentence. A fourth qualifying sentence."
    points = extract_key_points(content)
    assert points == [
        "This sentence is long enough to keep",
        "Another qualifying sentence here",
        "A third qualifying sentence",
    ]


def test_config_thresholds_are_respected():
    strict = AnalysisConfig(HIGH_RISK_THRESHOLD=1, MAX_TAGS=2)
    result = analyze("Passwords are confidential; access via VPN and firewall.", "", strict)
    assert result.risk_level == RiskLevel.HIGH
    assert len(result.tags) == 2


def test_remote_work_scenario(remote_work_policy):
    """Security vocabulary plus must/must not/confidential: Security Policy, high risk."""
    result = analyze(remote_work_policy["content"], remote_work_policy["title"])

    assert result.category == "Security Policy"
    assert result.risk_level == RiskLevel.HIGH
    assert result.compliance.required is True
    assert result.compliance.checkpoints == HIGH_RISK_CHECKPOINTS
    assert result.tags == ["password", "vpn"]
    assert len(result.key_points) == 3
    assert result.summary == (
        "Remote Work Guideline is a policy covering the main rules of the Security Policy area."
    )


def test_low_risk_gets_standard_checkpoints(plain_policy):
    result = analyze(plain_policy["content"], plain_policy["title"])
    assert result.risk_level == RiskLevel.LOW
    assert result.compliance.checkpoints == STANDARD_CHECKPOINTS


def test_local_tags_combine_vocabulary_and_title_words(remote_work_policy):
    tags = extract_local_tags(remote_work_policy["content"], remote_work_policy["title"])
    assert tags == ["guide", "password", "Remote", "Work"]


def test_local_tags_skip_generic_title_words():
    tags = extract_local_tags("", "Policy Guideline")
    assert tags == ["policy", "guide"]


def test_tag_cap_holds_across_categories():
    content = "security payroll budget workflow software contract audit firewall"
    result = analyze(content, "")
    assert len(result.tags) == 5
    assert result.tags == ["security", "firewall", "payroll", "budget", "workflow"]


def test_vpn_password_scenario_without_llm():
    content = (
        "Employees must use VPN. Passwords must be rotated monthly. "
        "Confidential data must not leave company devices."
    )
    result = analyze(content, "Remote Work Guideline")

    assert result.risk_level == RiskLevel.HIGH
    assert result.compliance.required is True
    assert len(result.tags) <= 5
    assert 1 <= len(result.key_points) <= 3
    assert all(point for point in result.key_points)
