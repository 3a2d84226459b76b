from __future__ import annotations


class LeadScoutError(Exception):
    """Base class for errors raised by leadscout."""


class ScoutingError(LeadScoutError):
    """An AI or network call failed; the user may retry the same action."""


class AuthorizationError(ScoutingError):
    """The AI backend credential is missing or was rejected."""


class StoreError(LeadScoutError):
    """Reading or writing the durable snapshot failed."""


class InvalidFormatError(LeadScoutError):
    """A blob is not a database image with the leads schema."""


class LeadNotFoundError(LeadScoutError):
    def __init__(self, lead_id: str) -> None:
        super().__init__(f"Lead not found: {lead_id}")
        self.lead_id = lead_id


class UnknownToolError(LeadScoutError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name
