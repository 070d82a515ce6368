from .display import display_analysis, display_usage_statistics

__all__ = [
    "display_analysis",
    "display_usage_statistics",
]
