from __future__ import annotations

import logging
from typing import Any, Callable

from leadscout.enricher import WebsiteAuditor
from leadscout.errors import ScoutingError
from leadscout.llm import LLMClient
from leadscout.models import Lead, SearchParams, coerce_bool, coerce_float, new_lead_id, normalize_sentiment

logger = logging.getLogger("leadscout.scouting")

DEFAULT_MARKET_GAPS = ["No online presence verified"]
DEFAULT_PITCH_ANGLE = "Focus on digital modernization."
REQUIRED_BUSINESS_FIELDS = ("name", "address", "rating", "latitude", "longitude")

DISCOVERY_PROMPT = (
    "Find {min_count}-{max_count} {industry} businesses in {location} with ratings between "
    "{min_rating:.1f} and {max_rating:.1f}. Provide their names, coordinates (lat/long), "
    "addresses, and current ratings."
)

STRUCTURE_PROMPT = """Parse the following business information into JSON of the form
{{"businesses": [{{"name": str, "address": str, "rating": number, "latitude": number, "longitude": number}}]}}.
Leave out any business you cannot place with coordinates.
Input: {listing}"""

AUDIT_PROMPT = """Research the digital presence of "{name}" at "{address}".
Check specifically for:
1. AI Chatbot presence.
2. Online booking availability.
3. Overall sentiment of recent public reviews.
4. Generic market gaps and a tactical pitch angle.
Output JSON with the keys marketGaps (list of short strings), pitchAngle (string),
website (string, empty if unknown), hasChatbot (boolean), hasOnlineBooking (boolean)
and sentiment ("positive", "neutral" or "negative")."""


class ScoutingPipeline:
    """Discover businesses for a search and audit each one.

    Three dependent AI steps: a free-text discovery call, a structuring call
    that turns that text into rows, then one audit call per business. Nothing
    is retried; the first failing call aborts the whole scout.
    """

    def __init__(
        self,
        llm: LLMClient,
        models: dict[str, str],
        auditor: WebsiteAuditor | None = None,
        min_businesses: int = 5,
        max_businesses: int = 8,
    ) -> None:
        self.llm = llm
        self.models = models
        self.auditor = auditor
        self.min_businesses = min_businesses
        self.max_businesses = max_businesses

    def scout(self, params: SearchParams, on_progress: Callable[[int, int], None] | None = None) -> list[Lead]:
        """Run all three steps. ``on_progress(done, total)`` fires once the
        businesses are known and again after each audit."""
        listing = self.discover(params)
        businesses = self.structure(listing)
        total = len(businesses)
        if on_progress is not None:
            on_progress(0, total)

        leads: list[Lead] = []
        for business in businesses:
            leads.append(self.audit_business(business, params))
            if on_progress is not None:
                on_progress(len(leads), total)
        return leads

    def discover(self, params: SearchParams) -> str:
        if not params.industry.strip() or not params.location.strip():
            raise ValueError("Both industry and location are required to scout")
        prompt = DISCOVERY_PROMPT.format(
            min_count=self.min_businesses,
            max_count=self.max_businesses,
            industry=params.industry,
            location=params.location,
            min_rating=params.min_rating,
            max_rating=params.max_rating,
        )
        listing = self.llm.complete_text(self.models["discovery_model"], prompt)
        if not listing.strip():
            raise ScoutingError("Discovery returned no businesses")
        return listing

    def structure(self, listing: str) -> list[dict[str, Any]]:
        payload = self.llm.complete_json(self.models["structure_model"], STRUCTURE_PROMPT.format(listing=listing))
        rows = payload.get("businesses", [])
        if not isinstance(rows, list):
            raise ScoutingError("Structuring step did not return a business list")

        businesses: list[dict[str, Any]] = []
        for row in rows:
            business = self._clean_business(row)
            if business is None:
                logger.warning("dropping unparseable business row: %s", row)
                continue
            businesses.append(business)
        return businesses

    def audit_business(self, business: dict[str, Any], params: SearchParams) -> Lead:
        analysis = self.llm.complete_json(
            self.models["audit_model"],
            AUDIT_PROMPT.format(name=business["name"], address=business["address"]),
        )
        gaps = analysis.get("marketGaps")
        if not isinstance(gaps, list) or not gaps:
            gaps = list(DEFAULT_MARKET_GAPS)

        lead = Lead(
            id=new_lead_id(),
            name=business["name"],
            address=business["address"],
            rating=business["rating"],
            latitude=business["latitude"],
            longitude=business["longitude"],
            industry=params.industry,
            market_gaps=[str(gap) for gap in gaps],
            pitch_angle=str(analysis.get("pitchAngle") or DEFAULT_PITCH_ANGLE),
            website=str(analysis.get("website") or ""),
            has_chatbot=coerce_bool(analysis.get("hasChatbot", False)),
            has_online_booking=coerce_bool(analysis.get("hasOnlineBooking", False)),
            sentiment=normalize_sentiment(analysis.get("sentiment")),
            is_saved=False,
        )
        if self.auditor is not None:
            self.auditor.audit(lead)
        return lead

    @staticmethod
    def _clean_business(row: Any) -> dict[str, Any] | None:
        if not isinstance(row, dict):
            return None
        if any(row.get(key) in (None, "") for key in REQUIRED_BUSINESS_FIELDS):
            return None
        rating = coerce_float(row["rating"])
        latitude = coerce_float(row["latitude"])
        longitude = coerce_float(row["longitude"])
        if rating is None or latitude is None or longitude is None:
            return None
        return {
            "name": str(row["name"]).strip(),
            "address": str(row["address"]).strip(),
            "rating": rating,
            "latitude": latitude,
            "longitude": longitude,
        }
