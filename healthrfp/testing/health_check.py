#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Health Check — verifies HealthRFP components are reachable and configured.

Usage:
    python -m healthrfp.testing.health_check
    python -m healthrfp.testing.health_check --json
"""

import argparse
import json
import uuid
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _check_llm(llm) -> dict:
    """Ask each routed function's primary provider whether its model is usable."""
    from healthrfp.rfx.llm_bridge import RouterCompletionService
    if not isinstance(llm, RouterCompletionService):
        return {"status": "ok", "service": type(llm).__name__}

    try:
        router = llm.router
    except Exception as e:
        return {"status": "error", "error": str(e)}

    functions = {}
    for fn in router.functions():
        provider, route = router.primary(fn)
        if provider is None:
            functions[fn] = {"available": False, "error": "no usable provider"}
            continue
        functions[fn] = {
            "available": provider.is_available(route),
            "provider": route.provider,
            "model_id": route.model_id,
        }

    ok = bool(functions) and all(f["available"] for f in functions.values())
    return {
        "status": "ok" if ok else "unavailable",
        "config": str(router.config_path),
        "functions": functions,
    }


def check_health(services) -> dict:
    """Run health checks against a built Services bundle."""
    checks = {}

    # Item store
    try:
        services.store.scan(services.tables.knowledge_base)
        checks["store"] = {"status": "ok", "backend": services.backend}
    except Exception as e:
        checks["store"] = {"status": "error", "error": str(e)}

    # Knowledge base (empty is allowed, defaults apply)
    try:
        count = len(services.knowledge_manager().list_entries())
        checks["knowledge_base"] = {
            "status": "ok",
            "entries": count,
            "using_defaults": count == 0,
        }
    except Exception as e:
        checks["knowledge_base"] = {"status": "error", "error": str(e)}

    # Object storage
    try:
        key = f"health/{uuid.uuid4()}.txt"
        services.objects.presigned_get(key, 60)
        checks["objects"] = {"status": "ok", "bucket": services.objects.bucket}
    except Exception as e:
        checks["objects"] = {"status": "error", "error": str(e)}

    # LLM routes
    checks["llm"] = _check_llm(services.llm)

    # Args
    args_dir = BASE_DIR / "args"
    arg_files = list(args_dir.glob("*.yaml")) if args_dir.exists() else []
    checks["args"] = {
        "status": "ok" if arg_files else "missing",
        "count": len(arg_files),
    }

    overall = all(c["status"] == "ok" for c in checks.values())
    return {"overall": "healthy" if overall else "degraded", "checks": checks}


def main():
    parser = argparse.ArgumentParser(description="Health Check")
    parser.add_argument("--backend", choices=("local", "aws"))
    parser.add_argument("--json", action="store_true")
    args = parser.parse_args()

    from healthrfp.pipeline.services import build_services
    result = check_health(build_services(backend=args.backend))

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print(f"Overall: {result['overall'].upper()}")
        for name, check in result["checks"].items():
            print(f"  {name}: {check['status']}")


if __name__ == "__main__":
    main()
