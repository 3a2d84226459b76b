from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from leadscout.errors import AuthorizationError, LeadNotFoundError, ScoutingError, UnknownToolError
from leadscout.llm import LLMClient
from leadscout.models import ChatMessage, coerce_bool
from leadscout.repository import LeadRepository

logger = logging.getLogger("leadscout.assistant")

SYSTEM_PROMPT = (
    "You are the LeadScout assistant. You help the user understand market opportunities, "
    "explain business gaps, and refine sales strategies for local lead generation. "
    "You can read the user's lead database and record notes, proposals and pitch angles "
    "on a lead with the provided tools. Always look a lead up before changing it."
)

GREETING = "Strategist online. How can I help you refine your scout results or develop a pitch strategy?"
AUTH_ERROR_MESSAGE = "I can't reach the AI backend: the API key is missing or was rejected. Set it and try again."
CONNECTION_ERROR_MESSAGE = "Error connecting to the strategy network. Please try again."
EMPTY_REPLY_MESSAGE = "Done. Ask me if you want a summary of what changed."

TOOL_DECLARATIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "get_leads",
            "description": "List the leads stored in the local database, newest first.",
            "parameters": {
                "type": "object",
                "properties": {
                    "filter_saved": {
                        "type": "boolean",
                        "description": "Only return leads the user has saved.",
                    },
                },
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_lead_details",
            "description": "Fetch one lead by id, including notes and proposal.",
            "parameters": {
                "type": "object",
                "properties": {"id": {"type": "string", "description": "Lead id."}},
                "required": ["id"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "update_lead_intelligence",
            "description": "Update the notes, proposal and/or pitch angle of a lead. Omitted fields are left unchanged.",
            "parameters": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "description": "Lead id."},
                    "notes": {"type": "string"},
                    "proposal": {"type": "string"},
                    "pitchAngle": {"type": "string"},
                },
                "required": ["id"],
            },
        },
    },
]


class TurnState(Enum):
    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    EXECUTING_TOOLS = "executing_tools"
    AWAITING_FOLLOWUP_RESPONSE = "awaiting_followup_response"
    DONE = "done"


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    raw_arguments: str = "{}"

    @classmethod
    def from_openai(cls, tool_call: Any) -> ToolCall:
        raw = tool_call.function.arguments or "{}"
        try:
            arguments = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("tool call %s has malformed arguments: %r", tool_call.id, raw)
            arguments = {}
        if not isinstance(arguments, dict):
            arguments = {}
        return cls(id=tool_call.id, name=tool_call.function.name, arguments=arguments, raw_arguments=raw)

    def to_message_entry(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.raw_arguments},
        }


@dataclass
class ToolResult:
    call_id: str
    name: str
    payload: dict[str, Any]
    is_error: bool = False

    def to_message(self) -> dict[str, Any]:
        return {"role": "tool", "tool_call_id": self.call_id, "content": json.dumps(self.payload)}


def _require_id(arguments: dict[str, Any]) -> str:
    lead_id = arguments.get("id")
    if not isinstance(lead_id, str) or not lead_id.strip():
        raise ValueError("Argument 'id' is required")
    return lead_id.strip()


def _optional_text(arguments: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = arguments.get(key)
        if value is not None:
            return str(value)
    return None


class AssistantToolBridge:
    """Runs assistant tool calls against the lead repository.

    Every call yields a ToolResult. Unknown tools, bad arguments and
    repository failures come back as error payloads so the conversation can
    carry on.
    """

    def __init__(self, repository: LeadRepository, on_data_changed: Callable[[], None] | None = None) -> None:
        self.repository = repository
        self.on_data_changed = on_data_changed
        self._handlers: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
            "get_leads": self._get_leads,
            "get_lead_details": self._get_lead_details,
            "update_lead_intelligence": self._update_lead_intelligence,
        }

    def execute(self, call: ToolCall) -> ToolResult:
        handler = self._handlers.get(call.name)
        if handler is None:
            error = UnknownToolError(call.name)
            logger.warning("%s", error)
            return ToolResult(call.id, call.name, {"status": "error", "error": str(error)}, is_error=True)

        try:
            payload = handler(call.arguments)
        except LeadNotFoundError as exc:
            return ToolResult(call.id, call.name, {"status": "not_found", "id": exc.lead_id}, is_error=True)
        except Exception as exc:  # noqa: BLE001
            logger.exception("tool %s failed", call.name)
            return ToolResult(call.id, call.name, {"status": "error", "error": str(exc)}, is_error=True)
        return ToolResult(call.id, call.name, payload)

    def execute_all(self, calls: list[ToolCall]) -> list[ToolResult]:
        return [self.execute(call) for call in calls]

    def _get_leads(self, arguments: dict[str, Any]) -> dict[str, Any]:
        leads = self.repository.get_all()
        if coerce_bool(arguments.get("filter_saved", False)):
            leads = [lead for lead in leads if lead.is_saved]
        return {"status": "success", "count": len(leads), "leads": [lead.to_dict() for lead in leads]}

    def _get_lead_details(self, arguments: dict[str, Any]) -> dict[str, Any]:
        lead_id = _require_id(arguments)
        lead = self.repository.get_by_id(lead_id)
        if lead is None:
            return {"status": "not_found", "id": lead_id}
        return {"status": "success", "lead": lead.to_dict()}

    def _update_lead_intelligence(self, arguments: dict[str, Any]) -> dict[str, Any]:
        lead_id = _require_id(arguments)
        updated = self.repository.update_intelligence(
            lead_id,
            notes=_optional_text(arguments, "notes"),
            proposal=_optional_text(arguments, "proposal"),
            pitch_angle=_optional_text(arguments, "pitchAngle", "pitch_angle"),
        )
        if updated:
            self._notify()
        return {"status": "success", "id": lead_id, "updated": updated}

    def _notify(self) -> None:
        if self.on_data_changed is None:
            return
        try:
            self.on_data_changed()
        except Exception:  # noqa: BLE001
            logger.exception("data-changed callback failed")


class AssistantSession:
    """One conversation with the assistant.

    A turn sends the history to the model; if the reply requests tools they
    run in order, every result is sent back in a single follow-up request, and
    the follow-up's text is the answer. The turn always ends in DONE with some
    text for the user, even when a call fails.
    """

    def __init__(
        self,
        llm: LLMClient,
        bridge: AssistantToolBridge,
        model: str,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.llm = llm
        self.bridge = bridge
        self.model = model
        self.state = TurnState.DONE
        self.history: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        self.last_tool_results: list[ToolResult] = []

    @property
    def transcript(self) -> list[ChatMessage]:
        return [
            ChatMessage(role=entry["role"], content=entry["content"])
            for entry in self.history
            if entry["role"] in ("user", "assistant") and entry.get("content")
        ]

    def send(self, message: str) -> str:
        self.history.append({"role": "user", "content": message})
        self.last_tool_results = []
        self.state = TurnState.AWAITING_MODEL_RESPONSE
        try:
            reply = self._run_turn()
        except AuthorizationError as exc:
            logger.warning("assistant turn failed, authorization: %s", exc)
            reply = AUTH_ERROR_MESSAGE
        except ScoutingError as exc:
            logger.warning("assistant turn failed: %s", exc)
            reply = CONNECTION_ERROR_MESSAGE
        except Exception:  # noqa: BLE001
            logger.exception("assistant turn failed on an unexpected response")
            reply = CONNECTION_ERROR_MESSAGE
        finally:
            self.state = TurnState.DONE

        self.history.append({"role": "assistant", "content": reply})
        return reply

    def _run_turn(self) -> str:
        response = self.llm.chat(self.model, self.history, tools=TOOL_DECLARATIONS)
        calls = [ToolCall.from_openai(tool_call) for tool_call in (response.tool_calls or [])]
        if not calls:
            return response.content or EMPTY_REPLY_MESSAGE

        self.state = TurnState.EXECUTING_TOOLS
        self.history.append(
            {
                "role": "assistant",
                "content": response.content,
                "tool_calls": [call.to_message_entry() for call in calls],
            }
        )
        results = self.bridge.execute_all(calls)
        self.last_tool_results = results
        self.history.extend(result.to_message() for result in results)

        self.state = TurnState.AWAITING_FOLLOWUP_RESPONSE
        followup = self.llm.chat(self.model, self.history, tools=TOOL_DECLARATIONS, tool_choice="none")
        return followup.content or EMPTY_REPLY_MESSAGE
