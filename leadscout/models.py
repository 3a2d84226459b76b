from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

SENTIMENTS = ("positive", "neutral", "negative")

_CAMEL_KEYS = {
    "marketGaps": "market_gaps",
    "pitchAngle": "pitch_angle",
    "hasChatbot": "has_chatbot",
    "hasOnlineBooking": "has_online_booking",
    "isSaved": "is_saved",
    "createdAt": "created_at",
}


def normalize_sentiment(value: Any) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in SENTIMENTS:
            return lowered
    return "neutral"


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def coerce_float(value: Any, default: float | None = None) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def new_lead_id() -> str:
    return secrets.token_hex(5)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Lead:
    id: str
    name: str
    address: str = ""
    rating: float = 0.0
    latitude: float = 0.0
    longitude: float = 0.0
    industry: str = ""
    market_gaps: list[str] = field(default_factory=list)
    pitch_angle: str = ""
    website: str = ""
    has_chatbot: bool = False
    has_online_booking: bool = False
    sentiment: str = "neutral"
    is_saved: bool = False
    notes: str | None = None
    proposal: str | None = None
    created_at: str = ""

    def __post_init__(self) -> None:
        self.sentiment = normalize_sentiment(self.sentiment)
        self.market_gaps = [str(gap) for gap in (self.market_gaps or [])]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "rating": self.rating,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "industry": self.industry,
            "marketGaps": list(self.market_gaps),
            "pitchAngle": self.pitch_angle,
            "website": self.website,
            "hasChatbot": self.has_chatbot,
            "hasOnlineBooking": self.has_online_booking,
            "sentiment": self.sentiment,
            "isSaved": self.is_saved,
            "notes": self.notes,
            "proposal": self.proposal,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Lead:
        values = {_CAMEL_KEYS.get(key, key): value for key, value in data.items()}
        return cls(
            id=str(values.get("id") or new_lead_id()),
            name=str(values.get("name") or ""),
            address=str(values.get("address") or ""),
            rating=coerce_float(values.get("rating"), 0.0),
            latitude=coerce_float(values.get("latitude"), 0.0),
            longitude=coerce_float(values.get("longitude"), 0.0),
            industry=str(values.get("industry") or ""),
            market_gaps=list(values.get("market_gaps") or []),
            pitch_angle=str(values.get("pitch_angle") or ""),
            website=str(values.get("website") or ""),
            has_chatbot=coerce_bool(values.get("has_chatbot", False)),
            has_online_booking=coerce_bool(values.get("has_online_booking", False)),
            sentiment=values.get("sentiment"),
            is_saved=coerce_bool(values.get("is_saved", False)),
            notes=values.get("notes"),
            proposal=values.get("proposal"),
            created_at=str(values.get("created_at") or ""),
        )


@dataclass
class SearchParams:
    industry: str
    location: str
    min_rating: float = 3.5
    max_rating: float = 4.5
    filter_chatbot: bool = False
    filter_booking: bool = False
    filter_sentiment: str = "all"


@dataclass
class CompetitorReport:
    competitor_url: str
    issues: list[str] = field(default_factory=list)
    comparison_summary: str = ""
    advantage_lead: str = ""


@dataclass
class ChatMessage:
    role: str
    content: str
