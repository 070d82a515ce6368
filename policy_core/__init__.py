# Policy AI Core Library
# Main entry point: from policy_core.orchestrator import AIOrchestrator

from .config import load_config, get_api_keys
from .orchestrator import AIOrchestrator
from .api import analyze_policy, build_orchestrator
from .service import create_policy_with_analysis

from .models import (
    AnalysisMode,
    AnalysisOutcome,
    Compliance,
    PolicyAnalysisRequest,
    PolicyAnalysisResult,
    PolicyDraft,
    PolicyPage,
    PolicyQuery,
    PolicyRecord,
    RiskLevel,
    UsageRecord,
)

from .exceptions import (
    PolicyAnalysisError,
    ValidationError,
    QuotaExceededError,
    NetworkError,
    ParseError,
    EmptyReplyError,
    APIKeyMissingError,
)

from .analysis import PolicyLLMClient, TaskResult, ErrorKind, analyze, extract_local_tags
from .usage import QuotaTracker
from .db import UsageLogger, init_database, get_usage_statistics

from .utils import CostTracker, LLMUsage, estimate_tokens, estimate_cost

__all__ = [
    # Main entry points
    "AIOrchestrator",
    "analyze_policy",
    "build_orchestrator",
    "create_policy_with_analysis",
    "load_config",
    "get_api_keys",
    # Models
    "AnalysisMode",
    "AnalysisOutcome",
    "Compliance",
    "PolicyAnalysisRequest",
    "PolicyAnalysisResult",
    "PolicyDraft",
    "PolicyPage",
    "PolicyQuery",
    "PolicyRecord",
    "RiskLevel",
    "UsageRecord",
    # Errors
    "PolicyAnalysisError",
    "ValidationError",
    "QuotaExceededError",
    "NetworkError",
    "ParseError",
    "EmptyReplyError",
    "APIKeyMissingError",
    # Components
    "PolicyLLMClient",
    "TaskResult",
    "ErrorKind",
    "analyze",
    "extract_local_tags",
    "QuotaTracker",
    "UsageLogger",
    "init_database",
    "get_usage_statistics",
    # Utils
    "CostTracker",
    "LLMUsage",
    "estimate_tokens",
    "estimate_cost",
]
