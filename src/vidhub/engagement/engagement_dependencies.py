"""FastAPI dependency for the engagement service."""

from __future__ import annotations

from fastapi import Request

from .engagement_service import EngagementService


def get_engagement_service(request: Request) -> EngagementService:
    try:
        return request.app.state.engagement_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("EngagementService is not configured") from exc
