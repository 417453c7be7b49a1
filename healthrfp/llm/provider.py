#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: HealthRFP Portal
# CUI Category: PROPIN (Proprietary Business Information)
# Distribution: D
# POC: HealthRFP System Administrator
"""Completion types shared by the router and its providers.

Every pipeline stage sends exactly one user prompt and reads back one block
of text, so a request is a prompt plus sampling limits rather than a chat
transcript. The pipeline function and process id travel with the request so
providers can tag their logs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class CompletionRequest:
    prompt: str
    max_tokens: int = 1024
    temperature: float = 0.3
    function: str = "default"
    process_id: str = ""
    system_prompt: str = ""


@dataclass
class CompletionResult:
    text: str
    model_id: str = ""
    provider: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    duration_ms: int = 0
    stop_reason: str = ""


@dataclass
class ModelRoute:
    """One entry of a routing chain: a configured model and its provider."""
    name: str
    provider: str
    model_id: str
    options: dict = field(default_factory=dict)


class LLMProvider(ABC):
    """A backend that can answer CompletionRequests for the models it hosts."""

    name = ""

    @abstractmethod
    def complete(self, request: CompletionRequest, route: ModelRoute) -> CompletionResult:
        """Run one completion; raise on any transport or model error."""

    @abstractmethod
    def is_available(self, route: ModelRoute) -> bool:
        """True when the backend reports the routed model as usable."""
