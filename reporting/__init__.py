"""
Reporting module.

Renders session reports for reviewers:
- Text summaries: headline numbers and label breakdowns
- Key findings: short interpretive statements

Persisting or transmitting reports is left to the integrating application.
"""

from .summary import format_report_summary, generate_key_findings

__all__ = [
    'format_report_summary',
    'generate_key_findings',
]
