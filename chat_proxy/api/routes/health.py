from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness probe.

    Also reports which providers have an API key configured (booleans only),
    so a missing secret shows up before the first proxied request fails.
    """

    adapters = getattr(request.app.state, "adapters", {})
    return {
        "status": "ok",
        "providers": {
            name: bool(getattr(adapter, "config", None) and adapter.config.api_key)
            for name, adapter in adapters.items()
        },
    }
