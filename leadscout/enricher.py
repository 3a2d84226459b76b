from __future__ import annotations

import logging

from leadscout.http import RequestManager
from leadscout.models import Lead

logger = logging.getLogger("leadscout.enricher")

CHATBOT_MARKERS = [
    "intercom",
    "drift.com",
    "tidio",
    "livechatinc",
    "crisp.chat",
    "tawk.to",
    "zendesk",
    "hubspot-messages",
    "manychat",
    "chatbot",
]
BOOKING_MARKERS = [
    "calendly",
    "acuityscheduling",
    "opentable",
    "resy.com",
    "booksy",
    "vagaro",
    "mindbodyonline",
    "squareup.com/appointments",
    "setmore",
    "simplybook",
    "fresha",
    "book now",
    "book online",
    "schedule an appointment",
]


class WebsiteAuditor:
    """Checks a lead's homepage for chat widgets and online booking.

    The AI audit is a guess; markers found in the live HTML only ever turn a
    signal on, a failed fetch leaves the lead as it was.
    """

    def __init__(self, request_manager: RequestManager) -> None:
        self.request_manager = request_manager

    def audit(self, lead: Lead) -> Lead:
        if not lead.website:
            return lead

        home_url = self._normalize_home_url(lead.website)
        try:
            html = self.request_manager.get_text(home_url)
        except RuntimeError as exc:
            logger.info("website audit skipped for %s: %s", lead.name, exc)
            return lead

        lower_html = html.lower()
        if self._has_marker(lower_html, CHATBOT_MARKERS):
            lead.has_chatbot = True
        if self._has_marker(lower_html, BOOKING_MARKERS):
            lead.has_online_booking = True
        return lead

    @staticmethod
    def _normalize_home_url(website: str) -> str:
        website = website.strip()
        if website.startswith("http://") or website.startswith("https://"):
            return website
        return f"https://{website}"

    @staticmethod
    def _has_marker(html: str, markers: list[str]) -> bool:
        return any(marker in html for marker in markers)
