"""Azure OpenAI chat client factory and helpers for structured LLM output."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from agent_framework.azure import AzureOpenAIChatClient
from azure.identity import DefaultAzureCredential

from venture_lab.errors import ConfigurationError

if TYPE_CHECKING:
    from venture_lab.config import OpenAIConfig

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def create_chat_client(config: OpenAIConfig, use_key: str | None = None) -> AzureOpenAIChatClient:
    """Create an AzureOpenAIChatClient.

    Authenticates with an API key when one is given (explicitly or via
    ``AZURE_OPENAI_API_KEY``), otherwise with DefaultAzureCredential, which
    uses Azure CLI credentials locally and managed identity when deployed.
    """
    if not config.is_configured:
        raise ConfigurationError(
            "LLM not configured — set AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_DEPLOYMENT"
        )
    api_key = use_key or config.api_key
    logger.info(
        "Chat client created — endpoint=%s deployment=%s auth=%s",
        config.endpoint,
        config.deployment,
        "key" if api_key else "identity",
    )
    if api_key:
        return AzureOpenAIChatClient(
            endpoint=config.endpoint,
            deployment_name=config.deployment,
            api_key=api_key,
        )
    return AzureOpenAIChatClient(
        endpoint=config.endpoint,
        deployment_name=config.deployment,
        credential=DefaultAzureCredential(),
    )


def parse_llm_json(text: str) -> Any:
    """Decode JSON from an LLM reply, tolerating a surrounding markdown code fence.

    Falls back to the outermost ``{...}`` or ``[...]`` span when the model
    wraps the JSON in prose. Raises ``ValueError`` when nothing decodes.
    """
    stripped = text.strip()
    match = _FENCE.match(stripped)
    if match:
        stripped = match.group(1)
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass
    for open_char, close_char in (("{", "}"), ("[", "]")):
        start = stripped.find(open_char)
        end = stripped.rfind(close_char)
        if start != -1 and end > start:
            try:
                return json.loads(stripped[start : end + 1])
            except json.JSONDecodeError:
                continue
    raise ValueError("LLM response did not contain valid JSON")
