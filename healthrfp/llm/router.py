#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: HealthRFP Portal
# CUI Category: PROPIN (Proprietary Business Information)
# Distribution: D
# POC: HealthRFP System Administrator
"""Config-driven LLM router for the RFP pipeline.

args/llm_config.yaml names providers, models and one routing chain per
pipeline function (bid_decision, draft_generation, compliance_review, with
``default`` for anything else). A request is tried against each model of its
chain in order; the shipped config uses single-model chains, so a failed
call is never retried. String values accept ``${VAR:-default}``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from healthrfp.llm.provider import CompletionRequest, CompletionResult, LLMProvider, ModelRoute

logger = logging.getLogger("healthrfp.llm.router")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = Path(
    os.environ.get("HEALTHRFP_LLM_CONFIG", str(BASE_DIR / "args" / "llm_config.yaml"))
)

_ENV_REF = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def _expand_env(value):
    """Expand ${VAR} and ${VAR:-default} in strings; other values pass through."""
    if not isinstance(value, str):
        return value

    def _sub(match):
        var, default = match.group(1), match.group(2)
        if default is None:
            return os.environ.get(var, match.group(0))
        return os.environ.get(var, default)

    return _ENV_REF.sub(_sub, value)


def load_llm_config(path: Path) -> dict:
    if not path.exists():
        logger.warning("LLM config not found at %s; no functions are routed", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Failed to load LLM config %s: %s", path, exc)
        return {}


def _build_provider(name: str, cfg: dict) -> Optional[LLMProvider]:
    ptype = cfg.get("type", "")
    if ptype == "bedrock":
        from healthrfp.llm.bedrock_provider import BedrockLLMProvider
        return BedrockLLMProvider(region=_expand_env(cfg.get("region", "us-east-1")))
    if ptype in ("openai", "openai_compatible", "ollama"):
        from healthrfp.llm.openai_provider import OpenAICompatibleProvider
        api_key = cfg.get("api_key") or os.environ.get(cfg.get("api_key_env", ""), "")
        default_url = ("http://localhost:11434/v1" if ptype == "ollama"
                       else "https://api.openai.com/v1")
        return OpenAICompatibleProvider(
            name, _expand_env(cfg.get("base_url", default_url)), api_key=api_key or "ollama",
        )
    logger.warning("Provider '%s' has unsupported type '%s'", name, ptype)
    return None


class LLMRouter:
    """Resolves pipeline functions to model routes and runs completions."""

    def __init__(self, config_path=None, config: Optional[dict] = None,
                 providers: Optional[Dict[str, LLMProvider]] = None):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.config = config if config is not None else load_llm_config(self.config_path)
        self._providers: Dict[str, LLMProvider] = dict(providers or {})

    def functions(self) -> List[str]:
        return sorted(self.config.get("routing", {}))

    def provider(self, name: str) -> Optional[LLMProvider]:
        if name not in self._providers:
            cfg = self.config.get("providers", {}).get(name)
            if not cfg:
                return None
            try:
                instance = _build_provider(name, cfg)
            except Exception as exc:
                logger.warning("Failed to create provider '%s': %s", name, exc)
                return None
            if instance is None:
                return None
            self._providers[name] = instance
        return self._providers[name]

    def routes(self, function: str) -> List[ModelRoute]:
        """The chain for ``function`` (or ``default``), env-expanded."""
        routing = self.config.get("routing", {})
        chain = (routing.get(function) or routing.get("default") or {}).get("chain", [])
        models = self.config.get("models", {})
        out = []
        for model_name in chain:
            cfg = {k: _expand_env(v) for k, v in (models.get(model_name) or {}).items()}
            if not cfg:
                logger.warning("Routing chain for %s names unknown model '%s'",
                               function, model_name)
                continue
            provider = cfg.pop("provider", "")
            model_id = cfg.pop("model_id", "")
            out.append(ModelRoute(model_name, provider, model_id, cfg))
        return out

    def primary(self, function: str) -> Tuple[Optional[LLMProvider], Optional[ModelRoute]]:
        """First route of the chain whose provider can be built."""
        for route in self.routes(function):
            provider = self.provider(route.provider)
            if provider is not None:
                return provider, route
        return None, None

    def complete(self, request: CompletionRequest) -> CompletionResult:
        routes = self.routes(request.function)
        if not routes:
            raise RuntimeError(f"No LLM route configured for function '{request.function}'")
        last_error = None
        for route in routes:
            provider = self.provider(route.provider)
            if provider is None:
                last_error = f"provider '{route.provider}' unavailable"
                continue
            try:
                return provider.complete(request, route)
            except Exception as exc:
                logger.warning("Model %s (%s) failed for %s: %s",
                               route.name, route.provider, request.function, exc)
                last_error = exc
        raise RuntimeError(
            f"All models in chain {[r.name for r in routes]} failed for function "
            f"'{request.function}'. Last error: {last_error}"
        )
