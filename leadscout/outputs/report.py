from __future__ import annotations

from pathlib import Path

from leadscout.models import CompetitorReport, Lead


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def render_lead_report(lead: Lead) -> str:
    lines = [
        f"# {lead.name}",
        "",
        f"ID: {lead.id.upper()}",
        f"Address: {lead.address}",
        f"Rating: {lead.rating:.1f}",
        f"Industry: {lead.industry}",
        f"Website: {lead.website or 'none found'}",
        f"Location: {lead.latitude:.5f}, {lead.longitude:.5f}",
        f"Saved: {_yes_no(lead.is_saved)}",
        "",
        "## Digital Footprint",
        "",
        f"- AI chatbot: {_yes_no(lead.has_chatbot)}",
        f"- Online booking: {_yes_no(lead.has_online_booking)}",
        f"- Review sentiment: {lead.sentiment}",
        "",
        "## Market Gaps",
        "",
    ]
    for index, gap in enumerate(lead.market_gaps, start=1):
        lines.append(f"{index:02d}. {gap}")

    lines.extend(["", "## Pitch Angle", "", f'"{lead.pitch_angle}"'])

    if lead.notes:
        lines.extend(["", "## Notes", "", lead.notes])
    if lead.proposal:
        lines.extend(["", "## Proposal", "", lead.proposal])

    return "\n".join(lines) + "\n"


def render_competitor_report(lead: Lead, report: CompetitorReport) -> str:
    lines = [
        f"# {lead.name} vs {report.competitor_url}",
        "",
        "## Competitor Issues",
        "",
    ]
    lines.extend(f"- {issue}" for issue in report.issues)
    if not report.issues:
        lines.append("- none found")
    lines.extend(
        [
            "",
            "## Comparison",
            "",
            report.comparison_summary,
            "",
            "## Advantage",
            "",
            report.advantage_lead,
        ]
    )
    return "\n".join(lines) + "\n"


def write_report(output_path: str, content: str) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
