from __future__ import annotations

import csv
from pathlib import Path

from leadscout.models import Lead

HEADERS = [
    "ID",
    "Name",
    "Address",
    "Rating",
    "Industry",
    "Website",
    "Chatbot",
    "Online Booking",
    "Sentiment",
    "Market Gaps",
    "Pitch Angle",
    "Saved",
    "Notes",
    "Created At",
]


def lead_to_row(lead: Lead) -> list[str | float]:
    return [
        lead.id,
        lead.name,
        lead.address,
        lead.rating,
        lead.industry,
        lead.website,
        "yes" if lead.has_chatbot else "no",
        "yes" if lead.has_online_booking else "no",
        lead.sentiment,
        "; ".join(lead.market_gaps),
        lead.pitch_angle,
        "yes" if lead.is_saved else "no",
        lead.notes or "",
        lead.created_at,
    ]


def write_leads_csv(path: str, leads: list[Lead]) -> None:
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADERS)
        for lead in leads:
            writer.writerow(lead_to_row(lead))
