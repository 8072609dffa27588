"""HTTP adapter for an Ollama-compatible text generation server."""

from __future__ import annotations

import json
from dataclasses import dataclass

import httpx

from sms_ledger.application.ports.collaborators import (
    ErrorCallback,
    PartialCallback,
)
from sms_ledger.domain.errors import InferenceError, compose_error_message

GENERATE_PATH = "/api/generate"


@dataclass(slots=True, frozen=True)
class HttpInferenceEngine:
    """Streams a completion from ``POST /api/generate``.

    Each streamed line is a JSON object whose ``response`` fragment is handed
    to ``on_partial``; the concatenation is returned as the final text.
    """

    base_url: str
    model: str
    max_tokens: int = 1024
    timeout_seconds: float = 120.0
    transport: httpx.BaseTransport | None = None

    def generate_response(
        self,
        prompt: str,
        on_partial: PartialCallback,
        on_error: ErrorCallback,
    ) -> str:
        body = {
            "model": self.model,
            "prompt": prompt,
            "raw": True,
            "stream": True,
            "options": {"num_predict": self.max_tokens, "temperature": 0},
        }
        fragments: list[str] = []
        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self.transport,
            ) as client:
                with client.stream("POST", GENERATE_PATH, json=body) as response:
                    response.raise_for_status()
                    for line in response.iter_lines():
                        fragment = _parse_stream_line(line)
                        if fragment:
                            fragments.append(fragment)
                            on_partial(fragment)
        except InferenceError as exc:
            on_error(exc)
            raise
        except httpx.HTTPError as exc:
            error = InferenceError(
                message=compose_error_message(
                    cause=f"Generation request failed: {exc}.",
                    action="Check that the model server is running.",
                ),
                details={"model": self.model},
            )
            on_error(error)
            raise error from exc

        return "".join(fragments)


def _parse_stream_line(line: str) -> str:
    if not line.strip():
        return ""
    try:
        chunk = json.loads(line)
    except json.JSONDecodeError as exc:
        raise InferenceError(
            message=compose_error_message(
                cause="Model server streamed a non-JSON line.",
                action="Point INFERENCE_BASE_URL at an Ollama-compatible server.",
            )
        ) from exc
    if not isinstance(chunk, dict):
        return ""
    if chunk.get("error"):
        raise InferenceError(
            message=compose_error_message(
                cause=f"Model server reported: {chunk['error']}.",
                action="Check the model name and server logs.",
            )
        )
    fragment = chunk.get("response")
    return fragment if isinstance(fragment, str) else ""
