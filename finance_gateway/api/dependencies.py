"""Dependency injection for FastAPI endpoints"""

from datetime import date
from fastapi import Depends, Header, HTTPException, Request
from finance_gateway.infrastructure.clients.classifier import ClassifierClient
from finance_gateway.infrastructure.observability.logging import LoggingObserver


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_user_id(x_user_id: str = Header(default="")) -> str:
    """Caller identity, set by the auth proxy in front of the service"""
    if not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_today() -> date:
    """The request's notion of "today"; the only place the wall clock is read"""
    return date.today()


def get_observer(request: Request, user_id: str = Depends(get_user_id)) -> LoggingObserver:
    """Engine observer bound to the current request"""
    return LoggingObserver(request_id=get_request_id(request), user_id=user_id)


def get_classifier_client() -> ClassifierClient:
    """Provide category suggestion client instance"""
    return ClassifierClient()
