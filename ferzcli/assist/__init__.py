"""ferzcli assist -- client and presentation for the hosted assist API."""

from ferzcli.assist.client import AssistClient, Diagnostic
from ferzcli.assist.render import (
    print_analysis,
    print_diagnostics,
    print_super_agent,
    render_analysis_html,
    render_super_agent_html,
)

__all__ = [
    "AssistClient",
    "Diagnostic",
    "print_analysis",
    "print_diagnostics",
    "print_super_agent",
    "render_analysis_html",
    "render_super_agent_html",
]
