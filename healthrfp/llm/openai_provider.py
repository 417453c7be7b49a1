#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Provider for OpenAI-compatible chat endpoints (Ollama, vLLM, OpenAI).

Used for local development when Bedrock is not reachable; point a model at
the ``ollama`` provider in args/llm_config.yaml.
"""

import logging
import time

from openai import OpenAI

from healthrfp.llm.provider import CompletionResult, LLMProvider

logger = logging.getLogger("healthrfp.llm.openai")


class OpenAICompatibleProvider(LLMProvider):

    def __init__(self, name: str, base_url: str, api_key: str = "ollama"):
        self.name = name
        self._client = OpenAI(api_key=api_key, base_url=base_url.rstrip("/"))

    def complete(self, request, route):
        messages = [{"role": "user", "content": request.prompt}]
        if request.system_prompt:
            messages.insert(0, {"role": "system", "content": request.system_prompt})

        started = time.monotonic()
        try:
            resp = self._client.chat.completions.create(
                model=route.model_id,
                messages=messages,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
            )
        except Exception as exc:
            raise RuntimeError(f"{self.name} completion failed: {exc}") from exc

        choice = resp.choices[0]
        usage = resp.usage
        logger.debug("process=%s function=%s model=%s via %s",
                     request.process_id or "-", request.function, route.model_id, self.name)
        return CompletionResult(
            text=choice.message.content or "",
            model_id=route.model_id,
            provider=self.name,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            duration_ms=int((time.monotonic() - started) * 1000),
            stop_reason=choice.finish_reason or "",
        )

    def is_available(self, route):
        try:
            self._client.models.retrieve(route.model_id)
        except Exception as exc:
            logger.warning("%s model %s not reachable: %s", self.name, route.model_id, exc)
            return False
        return True
