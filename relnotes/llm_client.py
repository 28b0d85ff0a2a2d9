"""Chat clients used to rewrite changelog bullets into prose."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence

import httpx

from .config import RewriteSettings
from .prompts import get_rewrite_system


class RewriteError(RuntimeError):
    """The text-generation service returned an error or an unusable reply."""


class TextRewriter(Protocol):
    async def rewrite(self, bullets: Sequence[str]) -> str:
        ...


def _log_request(
    log: Optional[Callable[[str], None]],
    label: str,
    model: str,
    system: str,
    user: str,
) -> None:
    if log is None:
        return
    prompt_chars = len(system) + len(user)
    prompt_bytes = len(system.encode("utf-8", errors="ignore")) + len(user.encode("utf-8", errors="ignore"))
    log(f"[LLM] {label} model={model} prompt_chars={prompt_chars} prompt_bytes={prompt_bytes}")


def _content(data: Any, *path: Any) -> str:
    """Walk a decoded JSON reply and return the string found at ``path``."""
    node = data
    for key in path:
        try:
            node = node[key]
        except (KeyError, IndexError, TypeError) as e:
            raise RewriteError(f"Malformed reply: missing {key!r}") from e
    if not isinstance(node, str):
        raise RewriteError("Malformed reply: content is not a string")
    return node


def _messages(system: str, user: str) -> list:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


async def ollama_chat(
    base_url: str,
    model: str,
    system: str,
    user: str,
    *,
    temperature: float,
    timeout_s: float,
    log: Optional[Callable[[str], None]] = None,
    label: str = "request",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Send a single chat request to Ollama and return the response text."""
    _log_request(log, label, model, system, user)
    payload = {
        "model": model,
        "messages": _messages(system, user),
        "options": {"temperature": temperature},
        "stream": False,
    }
    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        r = await client.post(f"{base_url.rstrip('/')}/api/chat", json=payload)
        r.raise_for_status()
        return _content(r.json(), "message", "content")


async def openai_chat(
    base_url: str,
    api_key: str,
    model: str,
    system: str,
    user: str,
    *,
    temperature: float,
    timeout_s: float,
    log: Optional[Callable[[str], None]] = None,
    label: str = "request",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Send a single chat completion request to an OpenAI-compatible API."""
    _log_request(log, label, model, system, user)
    payload = {
        "model": model,
        "messages": _messages(system, user),
        "temperature": temperature,
    }
    headers = {"Authorization": f"Bearer {api_key}"}
    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        r = await client.post(f"{base_url.rstrip('/')}/chat/completions", json=payload, headers=headers)
        r.raise_for_status()
        return _content(r.json(), "choices", 0, "message", "content")


@dataclass
class OllamaRewriter:
    """Rewrite bullets with a model served by Ollama."""
    base_url: str
    model: str
    system: str
    temperature: float = 0.2
    timeout_s: float = 60.0
    log: Optional[Callable[[str], None]] = None
    transport: Optional[httpx.AsyncBaseTransport] = None

    async def rewrite(self, bullets: Sequence[str]) -> str:
        return await ollama_chat(
            self.base_url, self.model,
            self.system,
            "\n".join(bullets),
            temperature=self.temperature,
            timeout_s=self.timeout_s,
            log=self.log,
            label="rewrite",
            transport=self.transport,
        )


@dataclass
class OpenAIRewriter:
    """Rewrite bullets with an OpenAI-compatible chat completions API."""
    api_key: str
    model: str
    system: str
    base_url: str = "https://api.openai.com/v1"
    temperature: float = 0.2
    timeout_s: float = 60.0
    log: Optional[Callable[[str], None]] = None
    transport: Optional[httpx.AsyncBaseTransport] = None

    async def rewrite(self, bullets: Sequence[str]) -> str:
        return await openai_chat(
            self.base_url, self.api_key, self.model,
            self.system,
            "\n".join(bullets),
            temperature=self.temperature,
            timeout_s=self.timeout_s,
            log=self.log,
            label="rewrite",
            transport=self.transport,
        )


def build_rewriter(
    settings: RewriteSettings,
    *,
    log: Optional[Callable[[str], None]] = None,
) -> Optional[TextRewriter]:
    """Create the configured rewriter, or None when no credential is configured."""
    if not settings.enabled:
        return None
    system = get_rewrite_system(settings.system)
    if settings.provider == "ollama":
        return OllamaRewriter(
            base_url=settings.base_url,
            model=settings.model,
            system=system,
            temperature=settings.temperature,
            timeout_s=settings.timeout_s,
            log=log,
        )
    return OpenAIRewriter(
        api_key=settings.api_key or "",
        model=settings.model,
        system=system,
        base_url=settings.base_url,
        temperature=settings.temperature,
        timeout_s=settings.timeout_s,
        log=log,
    )
