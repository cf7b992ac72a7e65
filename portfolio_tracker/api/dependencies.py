"""
Shared FastAPI dependencies: identity, current user and service wiring.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_tracker.domain.services.valuation_engine import ValuationEngine
from portfolio_tracker.infrastructure.db.database import get_db
from portfolio_tracker.infrastructure.db.models import UserModel
from portfolio_tracker.infrastructure.db.repositories.transaction_repository import TransactionRepository
from portfolio_tracker.infrastructure.db.repositories.user_repository import UserRepository
from portfolio_tracker.infrastructure.market_data.provider_factory import (
    build_quote_service,
    build_valuation_engine,
)
from portfolio_tracker.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    subject: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


IdentityResolver = Callable[[str], Identity]


def decode_token_claims(token: str) -> Identity:
    """
    Read the claims segment of a JWT. The signature is not checked here;
    tokens are verified by the identity provider in front of the API.

    Raises:
        ValueError: if the token is not a JWT or has no ``sub`` claim
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("Token is not a JWT")
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("Token claims are not valid JSON") from exc
    if not isinstance(claims, dict) or not claims.get("sub"):
        raise ValueError("Token has no subject")
    return Identity(
        subject=str(claims["sub"]),
        email=claims.get("email"),
        first_name=claims.get("given_name"),
        last_name=claims.get("family_name"),
    )


def get_identity_resolver() -> IdentityResolver:
    return decode_token_claims


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return resolver(credentials.credentials)
    except ValueError as exc:
        logger.warning(f"Rejected bearer token: {exc}")
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> UserModel:
    """Resolve the caller to a user row, creating it on first sight"""
    return await UserRepository(db).get_or_create(
        subject=identity.subject,
        email=identity.email,
        first_name=identity.first_name,
        last_name=identity.last_name,
    )


async def get_transaction_repository(
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionRepository:
    return TransactionRepository(db, user.id)


def get_quote_service(request: Request) -> QuoteService:
    # One instance per app so the TTL cache outlives a request
    service = getattr(request.app.state, "quote_service", None)
    if service is None:
        service = build_quote_service()
        request.app.state.quote_service = service
    return service


def get_valuation_engine() -> ValuationEngine:
    return build_valuation_engine()
