import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence

import httpx
import jsonschema

logger = logging.getLogger(__name__)


class LLMProviderError(RuntimeError):
    """Raised when the model conversation cannot be completed."""


@dataclass(frozen=True)
class LLMMessage:
    role: str
    content: str


@dataclass(frozen=True)
class LLMTool:
    """A named capability the model may invoke during a generation."""

    name: str
    description: str
    parameters: Dict[str, Any]
    handler: Callable[[Dict[str, Any]], Dict[str, Any]]

    def declaration(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def invoke(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        jsonschema.validate(instance=arguments, schema=self.parameters)
        return self.handler(arguments)


@dataclass(frozen=True)
class ToolInvocation:
    name: str
    arguments: Dict[str, Any]
    output: Dict[str, Any]


@dataclass(frozen=True)
class LLMResponse:
    text: str
    tool_invocations: List[ToolInvocation] = field(default_factory=list)


class LLMProvider(ABC):
    """Provider-agnostic LLM interface."""

    @abstractmethod
    def generate(
        self,
        messages: List[LLMMessage],
        model: str,
        tools: Sequence[LLMTool] = (),
    ) -> LLMResponse:
        raise NotImplementedError


class OpenAIChatProvider(LLMProvider):
    """OpenAI-compatible chat completions provider with function tools."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60.0,
        max_tool_rounds: int = 4,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_tool_rounds = max_tool_rounds
        self.transport = transport

    def generate(
        self,
        messages: List[LLMMessage],
        model: str,
        tools: Sequence[LLMTool] = (),
    ) -> LLMResponse:
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        registry = {tool.name: tool for tool in tools}
        conversation: List[Dict[str, Any]] = [{"role": m.role, "content": m.content} for m in messages]
        invocations: List[ToolInvocation] = []

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            # One extra round so the model can answer after its last tool call.
            for _ in range(self.max_tool_rounds + 1):
                payload: Dict[str, Any] = {
                    "model": model,
                    "messages": conversation,
                    "temperature": 0,
                }
                if registry:
                    payload["tools"] = [tool.declaration() for tool in registry.values()]
                response = client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                message = response.json()["choices"][0]["message"]

                tool_calls = message.get("tool_calls") or []
                if not tool_calls:
                    return LLMResponse(text=message.get("content") or "", tool_invocations=invocations)

                conversation.append(
                    {
                        "role": "assistant",
                        "content": message.get("content"),
                        "tool_calls": tool_calls,
                    }
                )
                for call in tool_calls:
                    invocation = self._run_tool_call(registry, call)
                    invocations.append(invocation)
                    conversation.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.get("id"),
                            "content": json.dumps(invocation.output),
                        }
                    )

        raise LLMProviderError(f"Model kept calling tools after {self.max_tool_rounds} rounds")

    def _run_tool_call(self, registry: Dict[str, LLMTool], call: Dict[str, Any]) -> ToolInvocation:
        function = call.get("function") or {}
        name = function.get("name", "")
        tool = registry.get(name)
        if tool is None:
            logger.warning("Model requested unknown tool", extra={"tool": name})
            return ToolInvocation(name=name, arguments={}, output={"error": f"Unknown tool: {name}"})

        try:
            arguments = json.loads(function.get("arguments") or "{}")
        except json.JSONDecodeError:
            logger.warning("Tool arguments are not valid JSON", extra={"tool": name})
            return ToolInvocation(name=name, arguments={}, output={"error": "Arguments are not valid JSON"})

        try:
            output = tool.invoke(arguments)
        except jsonschema.ValidationError as exc:
            logger.warning("Tool arguments failed schema validation", extra={"tool": name, "error": exc.message})
            return ToolInvocation(name=name, arguments=arguments, output={"error": exc.message})

        logger.info("Tool invoked", extra={"tool": name})
        return ToolInvocation(name=name, arguments=arguments, output=output)
