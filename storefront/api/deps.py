"""Shared API dependencies"""

from typing import AsyncIterator

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis

from storefront.config import settings
from storefront.exceptions import StorefrontError
from storefront.services.cart import Cart
from storefront.services.notifications import Notifier, enqueue_notification

AGE_SESSION_KEY = "age_verified"


def http_error(exc: StorefrontError) -> HTTPException:
    """Translate a domain error into an HTTP response"""
    if exc.field:
        detail = {"message": exc.message, "errors": {exc.field: [exc.message]}}
    else:
        detail = exc.message
    return HTTPException(status_code=exc.status_code, detail=detail)


async def get_redis() -> AsyncIterator[Redis]:
    """Redis client for request-scoped counters"""
    client = Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        yield client
    finally:
        await client.aclose()


def get_notifier() -> Notifier:
    """Queue notifications on the Celery worker"""
    return enqueue_notification


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_cart(request: Request) -> Cart:
    return Cart.from_session(request.session)


def is_age_verified(request: Request) -> bool:
    return bool(request.session.get(AGE_SESSION_KEY))


async def require_age_verified(request: Request) -> None:
    """Gate shop routes behind the age confirmation"""
    if not is_age_verified(request):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You must confirm you are {settings.age_requirement} or older to continue.",
        )
