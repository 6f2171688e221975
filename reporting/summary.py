"""
Human-readable rendering of a session report.

Produces a plain-text summary for reviewers: headline numbers, emotion and
posture breakdowns, and short key findings. The report itself is not
written anywhere; callers decide where the text goes.
"""

import logging
from typing import List, Mapping

from tracking_analysis.report import SessionReport

logger = logging.getLogger(__name__)

RULE = "=" * 60


def format_report_summary(report: SessionReport) -> str:
    """
    Render a SessionReport as multi-line text.

    Args:
        report: Report returned by generate_report()

    Returns:
        Summary text (no trailing newline)
    """
    lines = [
        RULE,
        "INTERVIEW TRACKING REPORT",
        RULE,
        f"Started:            {report.start_time:%Y-%m-%d %H:%M:%S}",
        f"Duration:           {_format_seconds(report.duration_seconds)}",
        f"Frames analyzed:    {report.total_frames}",
        f"Average attention:  {report.average_attention * 100:.1f}%",
        f"Dominant emotion:   {report.dominant_emotion}",
        f"Suspicious frames:  {report.suspicious_activity_count} "
        f"({report.suspicious_ratio * 100:.1f}%)",
        "",
        "Emotion breakdown:",
    ]
    lines.extend(_format_breakdown(report.emotion_breakdown))
    lines.append("")
    lines.append("Posture breakdown:")
    lines.extend(_format_breakdown(report.posture_breakdown))
    lines.append("")
    lines.append("Key findings:")
    lines.extend(f"  - {finding}" for finding in generate_key_findings(report))
    lines.append(RULE)

    return "\n".join(lines)


def generate_key_findings(report: SessionReport) -> List[str]:
    """Short interpretive statements about the session."""
    findings = []

    if report.total_frames == 0:
        return ["No frames were analyzed in this session."]

    if report.average_attention >= 0.8:
        findings.append("Attention remained excellent throughout the session.")
    elif report.average_attention >= 0.6:
        findings.append("Attention was generally good.")
    elif report.average_attention < 0.4:
        findings.append("Attention was low for much of the session.")

    good_posture = report.posture_breakdown.get('good', 0.0)
    if good_posture >= 0.8:
        findings.append("Posture was good for most of the session.")
    elif good_posture < 0.5 and report.posture_breakdown.get('unknown', 0.0) < 0.5:
        findings.append("Posture needed correction for a large part of the session.")

    if report.suspicious_activity_count > 0:
        findings.append(
            f"Sustained suspicious activity was flagged on "
            f"{report.suspicious_activity_count} frames; review recommended."
        )

    if not findings:
        findings.append("No notable behavioral patterns detected.")

    return findings


def _format_breakdown(breakdown: Mapping[str, float]) -> List[str]:
    if not breakdown:
        return ["  (none)"]
    ordered = sorted(breakdown.items(), key=lambda item: item[1], reverse=True)
    return [f"  {label:<12s} {fraction * 100:5.1f}%" for label, fraction in ordered]


def _format_seconds(seconds: float) -> str:
    """Format seconds as MM:SS."""
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins:02d}:{secs:02d}"
