# policy_core/analysis/text_analyzer.py
"""
Rule-based policy analysis used when the LLM path is unavailable or fails.

Design Decisions:
- Pure functions over keyword tables, no I/O
- Never raises: None/empty input yields a fully populated default result
- Category tables are ordered; ties on the top score go to the first category
  in table order, and a text with no hits at all goes to DEFAULT_CATEGORY
- Risk is scored on keyword presence, not frequency

Matching is case-insensitive substring matching, so "encrypt" also counts
inside "encryption". Keywords are chosen with that in mind.
"""
import re
from typing import Dict, List, Optional, Tuple

from policy_core.analysis.config import DEFAULT_CONFIG, AnalysisConfig
from policy_core.models import Compliance, PolicyAnalysisResult, RiskLevel

DEFAULT_CATEGORY = "Operations Policy"

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "Security Policy": ["security", "encryption", "access", "permission", "authentication", "firewall", "virus", "password", "vpn"],
    "HR Policy": ["hiring", "recruitment", "evaluation", "payroll", "vacation", "training", "promotion"],
    "Finance Policy": ["finance", "budget", "expense", "spending", "settlement", "accounting", "investment"],
    "Operations Policy": ["operation", "process", "procedure", "workflow", "management", "system"],
    "Technology Policy": ["technology", "development", "system", "software", "hardware", "infrastructure"],
    "Legal Policy": ["legal", "contract", "regulation", "compliance", "audit", "lawsuit"],
}

# Every category a result may carry; providers are held to the same list
POLICY_CATEGORIES: Tuple[str, ...] = (*CATEGORY_KEYWORDS, "Uncategorized")

RISK_KEYWORDS: Tuple[str, ...] = (
    "risk",
    "critical",
    "mandatory",
    "must",
    "must not",
    "prohibited",
    "restricted",
    "confidential",
)

# Vocabulary for the local tag extractor (no LLM call)
COMMON_POLICY_TERMS: Tuple[str, ...] = (
    "policy", "rule", "guide", "process", "security", "numbering",
    "password", "authentication", "management", "system", "user", "data",
    "approval", "permission", "access", "restriction", "prohibited", "mandatory", "optional",
    "business", "operation", "service", "customer", "internal", "external",
)
GENERIC_TITLE_WORDS = {"policy", "rule", "guide", "guideline"}

DEFAULT_TAGS = ["general", "policy"]
DEFAULT_KEY_POINT = "Defines the core requirements of this policy."
HIGH_RISK_CHECKPOINTS = ["Periodic review required", "Approval required"]
STANDARD_CHECKPOINTS = ["Periodic review recommended"]

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_TITLE_SPLIT = re.compile(r"[\s\-_]+")


def _combined_text(content: Optional[str], title: Optional[str]) -> str:
    return f"{content or ''} {title or ''}".lower()


def score_categories(text: str) -> Dict[str, int]:
    """Total keyword occurrences per category over already-lowercased text."""
    return {
        category: sum(text.count(keyword) for keyword in keywords)
        for category, keywords in CATEGORY_KEYWORDS.items()
    }


def detect_category(content: Optional[str], title: Optional[str] = "") -> str:
    scores = score_categories(_combined_text(content, title))
    best_category = DEFAULT_CATEGORY
    best_score = 0
    for category, score in scores.items():
        if score > best_score:
            best_category, best_score = category, score
    return best_category


def extract_keyword_tags(
    content: Optional[str],
    title: Optional[str] = "",
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[str]:
    """Keywords from every category table that occur anywhere in the text."""
    text = _combined_text(content, title)
    tags: List[str] = []
    for keywords in CATEGORY_KEYWORDS.values():
        for keyword in keywords:
            if keyword in text and keyword not in tags:
                tags.append(keyword)
    return tags[:config.MAX_TAGS]


def extract_key_points(content: Optional[str], config: AnalysisConfig = DEFAULT_CONFIG) -> List[str]:
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(content or "")]
    points = [s for s in sentences if len(s) > config.MIN_SENTENCE_LENGTH]
    return points[:config.MAX_KEY_POINTS] or [DEFAULT_KEY_POINT]


def count_risk_keywords(content: Optional[str], title: Optional[str] = "") -> int:
    text = _combined_text(content, title)
    return sum(1 for keyword in RISK_KEYWORDS if keyword in text)


def assess_risk(
    content: Optional[str],
    title: Optional[str] = "",
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> RiskLevel:
    score = count_risk_keywords(content, title)
    if score >= config.HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if score >= config.MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def compliance_for(risk_level: RiskLevel) -> Compliance:
    if risk_level == RiskLevel.HIGH:
        return Compliance(required=True, checkpoints=list(HIGH_RISK_CHECKPOINTS))
    return Compliance(required=False, checkpoints=list(STANDARD_CHECKPOINTS))


def analyze(
    content: Optional[str],
    title: Optional[str] = "",
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> PolicyAnalysisResult:
    """
    Build a complete PolicyAnalysisResult from keyword tables alone.

    Args:
        content: Policy body text
        title: Policy title (may be empty)
        config: Caps and risk thresholds

    Returns:
        PolicyAnalysisResult with every field populated
    """
    category = detect_category(content, title)
    risk_level = assess_risk(content, title, config)
    subject = (title or "").strip() or "This policy"

    return PolicyAnalysisResult(
        category=category,
        policy_type="Regulation",
        key_points=extract_key_points(content, config),
        tags=extract_keyword_tags(content, title, config) or list(DEFAULT_TAGS),
        business_area="Company-wide",
        compliance=compliance_for(risk_level),
        summary=f"{subject} is a policy covering the main rules of the {category} area.",
        risk_level=risk_level,
        target_audience=["All employees"],
        effective_scope="Company-wide",
    )


def extract_local_tags(
    content: Optional[str],
    title: Optional[str] = "",
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[str]:
    """
    Cheap tag suggestion for the registration form, no LLM call.

    Common policy vocabulary found in the text, followed by the significant
    words of the title.
    """
    text = _combined_text(content, title)
    found = [term for term in COMMON_POLICY_TERMS if term in text]
    title_words = [
        word for word in _TITLE_SPLIT.split(title or "")
        if len(word) > 1 and word.lower() not in GENERIC_TITLE_WORDS
    ]

    tags: List[str] = []
    for tag in found + title_words:
        if tag not in tags:
            tags.append(tag)
    return tags[:config.MAX_TAGS]
