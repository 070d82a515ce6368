from .config import AnalysisConfig, DEFAULT_CONFIG
from .text_analyzer import (
    CATEGORY_KEYWORDS,
    RISK_KEYWORDS,
    DEFAULT_CATEGORY,
    POLICY_CATEGORIES,
    analyze,
    extract_local_tags,
)
from .llm import (
    ErrorKind,
    TaskResult,
    PolicyLLMClient,
    extract_json_object,
    normalize_category,
    parse_structured_reply,
    to_task_failure,
)

__all__ = [
    "AnalysisConfig",
    "DEFAULT_CONFIG",
    "CATEGORY_KEYWORDS",
    "RISK_KEYWORDS",
    "DEFAULT_CATEGORY",
    "POLICY_CATEGORIES",
    "analyze",
    "extract_local_tags",
    "ErrorKind",
    "TaskResult",
    "PolicyLLMClient",
    "extract_json_object",
    "normalize_category",
    "parse_structured_reply",
    "to_task_failure",
]
