from __future__ import annotations

from leadscout.models import SENTIMENTS, Lead, SearchParams


def apply_filters(leads: list[Lead], params: SearchParams) -> list[Lead]:
    filtered = [lead for lead in leads if params.min_rating <= lead.rating <= params.max_rating]

    if params.filter_chatbot:
        filtered = [lead for lead in filtered if lead.has_chatbot]
    if params.filter_booking:
        filtered = [lead for lead in filtered if lead.has_online_booking]
    if params.filter_sentiment in SENTIMENTS:
        filtered = [lead for lead in filtered if lead.sentiment == params.filter_sentiment]

    return filtered
