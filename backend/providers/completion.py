"""Streaming chat completions through LangChain.

Implements the debates module's completion provider protocol on top of a
ChatOpenAI client. A fresh client is built per call because the credential
belongs to the debate's caller, not to the server.
"""

from typing import Any, AsyncIterator

from langchain_core.messages import BaseMessage

from .base import LLMProvider, ModelConfig


def chunk_text(content: Any) -> str:
    """Extract text from a message chunk's content.

    Content is usually a string, but some providers send a list of typed
    content blocks; only the text blocks are kept.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


class LangChainCompletionProvider:
    """Completion provider that streams via an LLMProvider's ChatOpenAI client.

    Retries are left to the caller, so the client is built with
    max_retries=0. The timeout applies to each HTTP request.
    """

    def __init__(
        self,
        provider: LLMProvider,
        provider_type: str,
        api_base: str = "",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
    ):
        self._provider = provider
        self.provider_type = provider_type
        self.api_base = api_base
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def request_options(self, reasoning: bool | None = None) -> dict[str, Any]:
        """Build the ChatOpenAI arguments for one call.

        The reasoning switch is only sent when the caller set it; models
        without toggle support get no reasoning parameter at all.
        """
        options: dict[str, Any] = {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "max_retries": 0,
            "streaming": True,
        }
        if reasoning is not None:
            options["extra_body"] = {"reasoning": {"enabled": reasoning}}
        return options

    async def stream(
        self,
        model: str,
        messages: list[BaseMessage],
        credential: str,
        reasoning: bool | None = None,
    ) -> AsyncIterator[str]:
        """Stream raw text chunks for the conversation."""
        config = ModelConfig(
            provider_type=self.provider_type,
            model_id=model,
            api_base=self.api_base,
            api_key=credential,
        )
        llm = self._provider.get_llm(config, **self.request_options(reasoning))

        async for chunk in llm.astream(messages):
            text = chunk_text(chunk.content)
            if text:
                yield text
