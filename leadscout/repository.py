from __future__ import annotations

import json
import logging
import sqlite3

from leadscout.errors import LeadNotFoundError
from leadscout.models import Lead, utc_now_iso
from leadscout.store import LeadStore

logger = logging.getLogger("leadscout.repository")

UPSERT_SQL = """
INSERT INTO leads (id, name, address, rating, latitude, longitude, industry, marketGaps, pitchAngle, website,
                   hasChatbot, hasOnlineBooking, sentiment, isSaved, notes, proposal, createdAt)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
  name=excluded.name,
  address=excluded.address,
  rating=excluded.rating,
  latitude=excluded.latitude,
  longitude=excluded.longitude,
  industry=excluded.industry,
  marketGaps=excluded.marketGaps,
  pitchAngle=excluded.pitchAngle,
  website=excluded.website,
  hasChatbot=excluded.hasChatbot,
  hasOnlineBooking=excluded.hasOnlineBooking,
  sentiment=excluded.sentiment,
  isSaved=excluded.isSaved,
  notes=COALESCE(excluded.notes, leads.notes),
  proposal=COALESCE(excluded.proposal, leads.proposal)
"""

ORDER_BY = "ORDER BY createdAt DESC, rowid DESC"

# Column name per patchable intelligence field.
INTELLIGENCE_COLUMNS = {
    "notes": "notes",
    "proposal": "proposal",
    "pitch_angle": "pitchAngle",
}


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not str(value).strip():
        return None
    return value


def _decode_gaps(raw: str | None) -> list[str]:
    try:
        gaps = json.loads(raw or "[]")
    except (json.JSONDecodeError, TypeError):
        return []
    return gaps if isinstance(gaps, list) else []


def _row_to_lead(row: sqlite3.Row) -> Lead:
    data = dict(row)
    data["marketGaps"] = _decode_gaps(row["marketGaps"])
    return Lead.from_dict(data)


class LeadRepository:
    def __init__(self, store: LeadStore) -> None:
        self.store = store

    def upsert(self, lead: Lead, is_saved_override: bool | None = None) -> None:
        if is_saved_override is not None:
            is_saved = bool(is_saved_override)
        else:
            existing = self.get_by_id(lead.id)
            is_saved = existing.is_saved if existing else False

        created_at = lead.created_at or utc_now_iso()
        self.store.execute(
            UPSERT_SQL,
            (
                lead.id,
                lead.name,
                lead.address,
                lead.rating,
                lead.latitude,
                lead.longitude,
                lead.industry,
                json.dumps(list(lead.market_gaps)),
                lead.pitch_angle,
                lead.website or "",
                1 if lead.has_chatbot else 0,
                1 if lead.has_online_booking else 0,
                lead.sentiment,
                1 if is_saved else 0,
                _blank_to_none(lead.notes),
                _blank_to_none(lead.proposal),
                created_at,
            ),
        )
        self.store.persist()
        logger.debug("upserted lead %s (saved=%s)", lead.id, is_saved)

    def upsert_many(self, leads: list[Lead]) -> int:
        for lead in leads:
            self.upsert(lead)
        return len(leads)

    def update_intelligence(
        self,
        lead_id: str,
        notes: str | None = None,
        proposal: str | None = None,
        pitch_angle: str | None = None,
    ) -> bool:
        """Patch only the supplied intelligence fields of one lead.

        Returns False when nothing was supplied (no write happens). Raises
        LeadNotFoundError for an unknown id, also without writing.
        """
        patch = {"notes": notes, "proposal": proposal, "pitch_angle": pitch_angle}
        fields = {INTELLIGENCE_COLUMNS[key]: value for key, value in patch.items() if value is not None}
        if not fields:
            return False

        set_clause = ", ".join(f"{column} = ?" for column in fields)
        changed = self.store.execute(
            f"UPDATE leads SET {set_clause} WHERE id = ?",
            (*fields.values(), lead_id),
        )
        if changed == 0:
            raise LeadNotFoundError(lead_id)
        self.store.persist()
        logger.info("updated intelligence for %s: %s", lead_id, ", ".join(fields))
        return True

    def toggle_save(self, lead_id: str) -> bool | None:
        changed = self.store.execute("UPDATE leads SET isSaved = 1 - COALESCE(isSaved, 0) WHERE id = ?", (lead_id,))
        if changed == 0:
            return None
        self.store.persist()
        lead = self.get_by_id(lead_id)
        return lead.is_saved if lead else None

    def get_all(self) -> list[Lead]:
        return [_row_to_lead(row) for row in self.store.query(f"SELECT * FROM leads {ORDER_BY}")]

    def get_saved(self) -> list[Lead]:
        rows = self.store.query(f"SELECT * FROM leads WHERE isSaved = 1 {ORDER_BY}")
        return [_row_to_lead(row) for row in rows]

    def get_by_id(self, lead_id: str) -> Lead | None:
        rows = self.store.query("SELECT * FROM leads WHERE id = ?", (lead_id,))
        if not rows:
            return None
        return _row_to_lead(rows[0])
