#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: HealthRFP Portal
# CUI Category: PROPIN (Proprietary Business Information)
# Distribution: D
# POC: HealthRFP System Administrator
"""Bedrock provider: Anthropic Messages bodies over bedrock-runtime InvokeModel.

Availability is asked of the Bedrock control plane (GetFoundationModel), so
the health check can tell a wrong model id from a reachable endpoint.
"""

import json
import logging
import time

import boto3

from healthrfp.llm.provider import CompletionRequest, CompletionResult, LLMProvider, ModelRoute

logger = logging.getLogger("healthrfp.llm.bedrock")

ANTHROPIC_VERSION = "bedrock-2023-05-31"


def build_messages_body(request: CompletionRequest,
                        anthropic_version: str = ANTHROPIC_VERSION) -> dict:
    body = {
        "anthropic_version": anthropic_version,
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
        "messages": [{
            "role": "user",
            "content": [{"type": "text", "text": request.prompt}],
        }],
    }
    if request.system_prompt:
        body["system"] = request.system_prompt
    return body


def _response_text(payload: dict) -> str:
    return "".join(
        block.get("text", "")
        for block in payload.get("content", [])
        if block.get("type") == "text"
    )


class BedrockLLMProvider(LLMProvider):
    name = "bedrock"

    def __init__(self, region: str = "us-east-1"):
        self._region = region
        self._runtime = None
        self._control = None

    def _runtime_client(self):
        if self._runtime is None:
            self._runtime = boto3.client("bedrock-runtime", region_name=self._region)
        return self._runtime

    def _control_client(self):
        if self._control is None:
            self._control = boto3.client("bedrock", region_name=self._region)
        return self._control

    def complete(self, request, route):
        started = time.monotonic()
        body = build_messages_body(
            request, route.options.get("anthropic_version", ANTHROPIC_VERSION),
        )
        response = self._runtime_client().invoke_model(
            modelId=route.model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(body),
        )
        payload = json.loads(response["body"].read())
        usage = payload.get("usage") or {}
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.debug("process=%s function=%s model=%s answered in %d ms",
                     request.process_id or "-", request.function, route.model_id, elapsed_ms)
        return CompletionResult(
            text=_response_text(payload),
            model_id=route.model_id,
            provider=self.name,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            duration_ms=elapsed_ms,
            stop_reason=payload.get("stop_reason") or "",
        )

    def is_available(self, route):
        try:
            details = self._control_client().get_foundation_model(
                modelIdentifier=route.model_id,
            ).get("modelDetails")
        except Exception as exc:
            logger.warning("Bedrock model %s not reachable: %s", route.model_id, exc)
            return False
        return bool(details)
