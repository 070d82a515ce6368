from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from policy_core.models import AnalysisMode, AnalysisOutcome, RiskLevel

console = Console()

RISK_COLORS = {
    RiskLevel.HIGH: ("red", "HIGH RISK"),
    RiskLevel.MEDIUM: ("yellow", "MEDIUM RISK"),
    RiskLevel.LOW: ("green", "LOW RISK"),
}


def display_analysis(title: str, outcome: AnalysisOutcome) -> None:
    """
    Display a policy analysis in the console with color-coded formatting.

    Panel border follows the risk level (red/yellow/green). Quick and summary
    modes only show the fields they produce.

    Args:
        title: Policy title
        outcome: Orchestrator outcome
    """
    result = outcome.result
    color, label = RISK_COLORS[result.risk_level]
    source = "[green]AI[/green]" if outcome.success else "[yellow]rule-based fallback[/yellow]"

    content = f"""
[bold]{title}[/bold]

[cyan]Mode:[/cyan] {outcome.mode.value}
[cyan]Source:[/cyan] {source}
[cyan]Processing:[/cyan] {outcome.processing_time_ms}ms, {outcome.tokens_used} tokens"""

    if outcome.mode == AnalysisMode.SUMMARY:
        content += f"\n\n[bold]Summary:[/bold]\n{result.summary}"
    elif outcome.mode == AnalysisMode.QUICK:
        content += f"\n\n[cyan]Category:[/cyan] {result.category}"
        content += f"\n[cyan]Tags:[/cyan] {', '.join(result.tags) or 'None'}"
    else:
        content += f"""

[cyan]Category:[/cyan] {result.category}
[cyan]Policy Type:[/cyan] {result.policy_type}
[cyan]Business Area:[/cyan] {result.business_area}
[bold {color}]Risk Level: {result.risk_level.value}[/bold {color}]

[bold]Summary:[/bold]
{result.summary or 'No summary available'}

[bold]Key Points:[/bold]"""
        for point in result.key_points:
            content += f"\n  • {point}"
        content += f"\n\n[cyan]Tags:[/cyan] {', '.join(result.tags) or 'None'}"
        content += f"\n[cyan]Target Audience:[/cyan] {', '.join(result.target_audience)}"
        content += f"\n[cyan]Scope:[/cyan] {result.effective_scope}"
        required = "[red]required[/red]" if result.compliance.required else "not required"
        content += f"\n\n[bold]Compliance:[/bold] {required}"
        for checkpoint in result.compliance.checkpoints:
            content += f"\n  • {checkpoint}"

    if outcome.errors:
        content += "\n\n[dim]" + "\n".join(outcome.errors) + "[/dim]"

    console.print(Panel(content, title=f"[{color}]{label}[/{color}]", border_style=color))


def display_usage_statistics(stats: dict[str, Any]) -> None:
    """Render get_usage_statistics() output as tables."""
    summary = stats["statistics"]
    table = Table(title=f"AI Usage ({stats['period']})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total requests", str(summary["total_requests"]))
    table.add_row("Successful", str(summary["successful_requests"]))
    table.add_row("Failed", str(summary["failed_requests"]))
    table.add_row("Success rate", f"{summary['success_rate']}%")
    table.add_row("Avg processing time", f"{summary['avg_processing_time_ms']}ms")
    console.print(table)

    if stats["analysis_type_stats"]:
        by_type = Table(title="By Analysis Type")
        by_type.add_column("Type", style="cyan")
        by_type.add_column("Requests", justify="right")
        for analysis_type, count in sorted(stats["analysis_type_stats"].items()):
            by_type.add_row(analysis_type, str(count))
        console.print(by_type)
