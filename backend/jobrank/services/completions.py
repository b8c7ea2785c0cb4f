"""
Structured Completion Client - Schema-constrained chat completions

Sends a system + user prompt to the chat completions API in strict
JSON-schema mode and parses the single choice's content as JSON.

Because the schema is enforced server-side, the parsed object already has
the requested shape; callers still validate it into typed models.

Usage:
    client = StructuredCompletionClient(api_key="sk-...")
    data = await client.complete(SYSTEM_PROMPT, user_prompt, SCHEMA)
"""

import json
import logging
from typing import Any, Dict, Optional, Protocol

from openai import APIError, AsyncOpenAI

from jobrank.exceptions import CompletionError

logger = logging.getLogger(__name__)


class CompletionProvider(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Dict[str, Any],
        name: str = "output",
    ) -> Dict[str, Any]:
        ...


class StructuredCompletionClient:
    """
    Chat completions with ``response_format={"type": "json_schema", ...}``.

    Attributes:
        model: Chat model name (default: gpt-4.1-mini)
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1-mini",
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Dict[str, Any],
        name: str = "output",
    ) -> Dict[str, Any]:
        """
        Run one schema-constrained completion.

        Args:
            system_prompt: Instructions for the model
            user_prompt: The batch payload
            schema: JSON schema the output must satisfy
            name: Schema name sent to the API

        Returns:
            Parsed JSON object

        Raises:
            CompletionError: On API failure, refusal, empty or invalid JSON output
        """
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": name,
                        "strict": True,
                        "schema": schema,
                    },
                },
            )
        except APIError as e:
            status = getattr(e, "status_code", None)
            raise CompletionError(
                f"OpenAI chat failed: {status} - {e}", status_code=status
            ) from e

        if not response.choices:
            raise CompletionError("OpenAI chat returned no choices")

        message = response.choices[0].message
        if getattr(message, "refusal", None):
            raise CompletionError(f"Model refused: {message.refusal}")

        content = message.content
        if not content:
            raise CompletionError("OpenAI chat returned empty content")

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse completion as JSON: {content[:100]}")
            raise CompletionError(f"Completion was not valid JSON: {e}") from e
