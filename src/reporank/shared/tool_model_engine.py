# src/reporank/shared/tool_model_engine.py
"""
Tool-calling model engine.
Sends a README to an OpenRouter chat model with a forced function tool and
returns the tool's argument map.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from reporank.core.errors import ModelInvocationError, ToolNotUsedError
from reporank.tasks.ranking.schema_builder import ObjectSchema

logger = logging.getLogger(__name__)

TOOL_NAME = "summarize_repository"
TOOL_DESCRIPTION = "Tool to summarize a github repository by its README contents"


class ModelClient(ABC):
    """Interface of the model collaborator."""

    @abstractmethod
    def invoke(self, schema: ObjectSchema, system_prompt: str, user_prompt: str,
               document: bytes) -> Dict[str, Any]:
        """
        Ask the model to answer the schema for a document.

        Args:
            schema: Tool input schema
            system_prompt: System prompt text
            user_prompt: User instruction text
            document: README contents

        Returns:
            Untyped tool argument map

        Raises:
            ToolNotUsedError: If the model did not call the tool
            ModelInvocationError: If the request failed
        """
        raise NotImplementedError


class ToolModelEngine(ModelClient):
    """
    OpenRouter chat-completions client using a single forced function tool.
    """

    def __init__(self, api_key: str, model_id: str,
                 base_url: str = "https://openrouter.ai/api/v1/chat/completions",
                 timeout: int = 120, request_delay: float = 0.2,
                 max_tokens: int = 2000):
        """
        Initialize the engine.

        Args:
            api_key: OpenRouter API key
            model_id: OpenRouter model identifier
            base_url: Chat completions endpoint
            timeout: Request timeout in seconds
            request_delay: Minimum seconds between requests
            max_tokens: Completion token limit
        """
        if not api_key:
            raise ValueError("API key not found. Set OPENROUTER_API_KEY environment variable")

        self.model_id = model_id
        self.base_url = base_url
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        }

        self.min_interval = request_delay
        self.last_request_time = 0.0
        self._rate_lock = threading.Lock()

        self.total_tokens = 0
        self._usage_lock = threading.Lock()

        logger.info(f"ToolModelEngine initialized for {model_id}")

    def build_payload(self, schema: ObjectSchema, system_prompt: str,
                      user_prompt: str, document: bytes) -> Dict[str, Any]:
        """Build the chat-completions request body."""
        readme_text = document.decode("utf-8", errors="replace")
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": f"{user_prompt}\n\n<document name=\"README\" format=\"md\">\n"
                           f"{readme_text}\n</document>"
            },
        ]

        return {
            "model": self.model_id,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": 0,
            "tools": [{
                "type": "function",
                "function": {
                    "name": TOOL_NAME,
                    "description": TOOL_DESCRIPTION,
                    "parameters": schema.to_json_schema()
                }
            }],
            "tool_choice": {"type": "function", "function": {"name": TOOL_NAME}}
        }

    def invoke(self, schema: ObjectSchema, system_prompt: str, user_prompt: str,
               document: bytes) -> Dict[str, Any]:
        payload = self.build_payload(schema, system_prompt, user_prompt, document)

        self._wait_if_needed()

        try:
            response = requests.post(
                self.base_url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ModelInvocationError(f"Can't invoke '{self.model_id}'. Reason: {e}") from e

        if response.status_code != 200:
            raise ModelInvocationError(
                f"Can't invoke '{self.model_id}'. HTTP {response.status_code}: {response.text}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ModelInvocationError(f"Invalid JSON from '{self.model_id}': {e}") from e

        self._track_usage(body)
        return self.parse_tool_arguments(body)

    def parse_tool_arguments(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Extract the argument map of the first call to our tool.

        Args:
            body: Chat completions response body

        Returns:
            Tool argument map

        Raises:
            ToolNotUsedError: If no choice contains a call to the tool
            ModelInvocationError: If the API reported an error or the arguments are not a JSON object
        """
        if "error" in body:
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise ModelInvocationError(f"Model API error: {message}")

        choices = body.get("choices") or []
        if not choices:
            raise ModelInvocationError("Model response has no choices")

        message = choices[0].get("message") or {}
        tool_calls = message.get("tool_calls") or []
        tool_call = next(
            (c for c in tool_calls if (c.get("function") or {}).get("name") == TOOL_NAME),
            None
        )
        if tool_call is None:
            finish_reason = choices[0].get("finish_reason")
            raise ToolNotUsedError(f"Model did not use {TOOL_NAME} (finish_reason={finish_reason})")

        arguments = tool_call["function"].get("arguments")
        if isinstance(arguments, dict):
            return arguments

        try:
            parsed = json.loads(arguments or "")
        except (TypeError, ValueError) as e:
            raise ModelInvocationError(f"Tool arguments are not valid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise ModelInvocationError("Tool arguments are not a JSON object")
        return parsed

    def _wait_if_needed(self):
        """Wait if necessary to respect the per-request delay."""
        with self._rate_lock:
            current_time = time.time()
            time_since_last = current_time - self.last_request_time

            if time_since_last < self.min_interval:
                time.sleep(self.min_interval - time_since_last)

            self.last_request_time = time.time()

    def _track_usage(self, body: Dict[str, Any]):
        usage = body.get("usage") or {}
        with self._usage_lock:
            self.total_tokens += int(usage.get("total_tokens") or 0)

    def get_total_tokens(self) -> int:
        """Get total tokens used so far."""
        return self.total_tokens


def create_engine(settings, model_id: Optional[str] = None) -> ToolModelEngine:
    """
    Create a ToolModelEngine from runtime settings.

    Args:
        settings: RuntimeSettings
        model_id: Model identifier

    Returns:
        Configured ToolModelEngine
    """
    return ToolModelEngine(
        api_key=settings.openrouter_api_key,
        model_id=model_id,
        base_url=settings.openrouter_base_url,
        timeout=settings.request_timeout,
        request_delay=settings.request_delay_seconds
    )
