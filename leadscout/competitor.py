from __future__ import annotations

from leadscout.errors import ScoutingError
from leadscout.llm import LLMClient
from leadscout.models import CompetitorReport, Lead

COMPETITOR_PROMPT = """Compare the target business "{name}" ({website}) with the competitor website: {competitor_url}.
Analyze digital marketing issues for the competitor (SEO, speed, mobile, etc.).
Provide a comparison report as JSON with the keys competitorUrl (string), issues (list of strings),
comparisonSummary (string) and advantageLead (one specific advantage the target business has
or could have over this competitor)."""


def analyze_competitor(llm: LLMClient, model: str, lead: Lead, competitor_url: str) -> CompetitorReport:
    competitor_url = competitor_url.strip()
    if not competitor_url:
        raise ValueError("Competitor URL is required")

    payload = llm.complete_json(
        model,
        COMPETITOR_PROMPT.format(name=lead.name, website=lead.website or "No website", competitor_url=competitor_url),
    )
    if not payload:
        raise ScoutingError("Competitor analysis returned nothing")

    issues = payload.get("issues") or []
    if not isinstance(issues, list):
        issues = [str(issues)]

    return CompetitorReport(
        competitor_url=str(payload.get("competitorUrl") or competitor_url),
        issues=[str(issue) for issue in issues],
        comparison_summary=str(payload.get("comparisonSummary") or ""),
        advantage_lead=str(payload.get("advantageLead") or ""),
    )
