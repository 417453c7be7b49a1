#!/usr/bin/env python3
# CUI // SP-PROPIN
"""LLM bridge: the completion capability the RFP pipeline depends on.

The pipeline only ever asks for ``complete(prompt, max_tokens, temperature)``.
RouterCompletionService satisfies that through the config-driven LLMRouter,
so each pipeline function (bid_decision, draft_generation,
compliance_review) can be pointed at a different model in
args/llm_config.yaml.

Every failure surfaces as LLMUnavailableError; the stage functions in the
orchestrator catch it and fall back to degraded results.
SHA-256 hashes of prompts/responses are logged, never the raw text.
"""

import hashlib
import logging
from abc import ABC, abstractmethod

from healthrfp.llm.provider import CompletionRequest
from healthrfp.rfx.errors import LLMUnavailableError

logger = logging.getLogger("healthrfp.rfx.llm_bridge")


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


class CompletionService(ABC):
    """Text completion capability: prompt in, completion text out."""

    @abstractmethod
    def complete(self, prompt: str, max_tokens: int, temperature: float,
                 function: str = "default", process_id: str = "") -> str:
        """Return completion text or raise LLMUnavailableError."""


class RouterCompletionService(CompletionService):
    """CompletionService backed by an LLMRouter, built on first use."""

    def __init__(self, router=None):
        self._router = router

    @property
    def router(self):
        if self._router is None:
            try:
                from healthrfp.llm.router import LLMRouter
                self._router = LLMRouter()
            except Exception as exc:
                logger.error("LLM router could not be initialised: %s", exc)
                raise LLMUnavailableError("LLM router could not be initialised.") from exc
        return self._router

    def complete(self, prompt, max_tokens, temperature, function="default", process_id=""):
        request = CompletionRequest(
            prompt=prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            function=function,
            process_id=process_id or "",
        )
        try:
            result = self.router.complete(request)
        except LLMUnavailableError:
            raise
        except Exception as e:
            logger.error("LLM call failed for process=%s function=%s: %s",
                         process_id or "-", function, e)
            raise LLMUnavailableError(str(e)) from e

        if not result.text:
            raise LLMUnavailableError(f"Empty completion for function '{function}'")

        logger.debug(
            "process=%s function=%s model=%s provider=%s prompt_sha=%s response_sha=%s "
            "tokens=%s/%s",
            process_id or "-", function, result.model_id, result.provider,
            _sha256(prompt)[:12], _sha256(result.text)[:12],
            result.input_tokens, result.output_tokens,
        )
        return result.text
