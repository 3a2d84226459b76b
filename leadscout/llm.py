from __future__ import annotations

import json
import logging
import os
from typing import Any

import openai
from openai import OpenAI

from leadscout.errors import AuthorizationError, ScoutingError

logger = logging.getLogger("leadscout.llm")

DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"


def coerce_json(text: str | None) -> Any:
    """Parse a JSON document out of model output.

    Accepts clean JSON, or JSON wrapped in prose or a markdown fence. Returns
    None when no JSON value can be recovered.
    """
    if not text:
        return None
    text = text.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                continue
    return None


class LLMClient:
    """Thin wrapper over the OpenAI chat completions API.

    The SDK client is built on first use, so a missing key only surfaces when
    an AI action actually runs. Auth failures map to AuthorizationError and
    every other SDK failure to ScoutingError.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_key_env: str = DEFAULT_API_KEY_ENV,
        timeout_seconds: float = 60,
        client: Any = None,
    ) -> None:
        self.api_key_env = api_key_env
        self.timeout_seconds = timeout_seconds
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            key = (self._api_key or os.getenv(self.api_key_env, "")).strip()
            if not key:
                raise AuthorizationError(f"{self.api_key_env} is not set")
            self._client = OpenAI(api_key=key, timeout=self.timeout_seconds)
        return self._client

    def has_credentials(self) -> bool:
        return self._client is not None or bool((self._api_key or os.getenv(self.api_key_env, "")).strip())

    def _create(self, **kwargs: Any) -> Any:
        try:
            return self.client.chat.completions.create(**kwargs)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise AuthorizationError(str(exc)) from exc
        except openai.OpenAIError as exc:
            logger.warning("OpenAI call failed (model=%s): %s", kwargs.get("model"), exc)
            raise ScoutingError(str(exc)) from exc

    @staticmethod
    def _messages(prompt: str, system: str | None) -> list[dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def complete_text(self, model: str, prompt: str, system: str | None = None) -> str:
        response = self._create(model=model, messages=self._messages(prompt, system))
        return response.choices[0].message.content or ""

    def complete_json(self, model: str, prompt: str, system: str | None = None) -> dict[str, Any]:
        response = self._create(
            model=model,
            messages=self._messages(prompt, system),
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content
        if not content:
            return {}
        parsed = coerce_json(content)
        if not isinstance(parsed, dict):
            raise ScoutingError(f"Model {model} returned invalid JSON")
        return parsed

    def chat(self, model: str, messages: list[dict[str, Any]], tools: list[dict] | None = None, **kwargs: Any) -> Any:
        """Send a conversation and return the assistant message object."""
        params: dict[str, Any] = {"model": model, "messages": messages}
        if tools:
            params["tools"] = tools
        params.update(kwargs)
        response = self._create(**params)
        return response.choices[0].message
