"""
auth.py - Bearer token verification for the Mood Journal API

Users sign in with an external identity provider (e.g. Clerk, Auth0) which
issues signed JWTs. This module only verifies those tokens; it never issues
them and keeps no user table.

Supported key sources:
1. JWKS (RS256) - set AUTH_JWKS_URL to the provider's JWKS endpoint. Keys
   are fetched and cached by PyJWT's PyJWKClient.
2. Shared secret (HS256) - set AUTH_JWT_SECRET. Handy for local development
   and tests.

The token's `sub` claim is the user id used to scope every store call.
Expiry is always enforced; issuer and audience only when configured.
If neither key source is configured, every request is rejected.
"""

import logging
from typing import Optional

import jwt
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .exceptions import AuthenticationError

_logger = logging.getLogger(__name__)


class IdentityVerifier:
    """Turns a bearer token into a user id, or raises AuthenticationError."""

    def __init__(
        self,
        jwks_url: Optional[str] = None,
        secret: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        self._jwks_client = jwt.PyJWKClient(jwks_url) if jwks_url else None
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        if not (self._jwks_client or self._secret):
            _logger.warning("No identity provider keys configured; all requests will be rejected.")

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityVerifier":
        return cls(
            jwks_url=settings.auth_jwks_url,
            secret=settings.auth_jwt_secret,
            issuer=settings.auth_issuer,
            audience=settings.auth_audience,
        )

    def _signing_key(self, token: str):
        if self._jwks_client:
            return self._jwks_client.get_signing_key_from_jwt(token).key, ["RS256"]
        if self._secret:
            return self._secret, ["HS256"]
        raise AuthenticationError("Identity provider is not configured.")

    def verify(self, token: str) -> str:
        """Validate `token` and return its subject (the user id)."""
        if not token:
            raise AuthenticationError("Missing bearer token.")
        try:
            key, algorithms = self._signing_key(token)
            payload = jwt.decode(
                token,
                key,
                algorithms=algorithms,
                issuer=self._issuer,
                audience=self._audience,
                options={"require": ["exp", "sub"], "verify_aud": self._audience is not None},
            )
        except jwt.PyJWTError as e:
            _logger.warning("Rejected bearer token: %s", e)
            raise AuthenticationError("Invalid or expired token.") from e

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Token has no subject.")
        return str(user_id)


# -------------------------
# Request-level enforcement
# -------------------------
PROTECTED_PREFIXES = ("/entries",)


def _bearer_token(header: Optional[str]) -> str:
    scheme, _, token = (header or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Missing bearer token.")
    return token.strip()


async def require_bearer_token(request: Request, call_next):
    """
    HTTP middleware rejecting unauthenticated calls to protected paths.

    Runs before routing, so a request without a valid token gets 401 even
    when its body is malformed. The verified user id is left on
    request.state.user_id for dependencies.get_current_user_id.
    CORS preflight (OPTIONS) requests pass through untouched.
    """
    if request.method == "OPTIONS" or not request.url.path.startswith(PROTECTED_PREFIXES):
        return await call_next(request)

    verifier: IdentityVerifier = request.app.state.identity_verifier
    try:
        token = _bearer_token(request.headers.get("Authorization"))
        # JWKS lookups may hit the network; keep them off the event loop.
        request.state.user_id = await run_in_threadpool(verifier.verify, token)
    except AuthenticationError as e:
        _logger.warning("Unauthorized %s %s: %s", request.method, request.url.path, e)
        return JSONResponse(status_code=401, content={"detail": str(e)}, headers={"WWW-Authenticate": "Bearer"})
    return await call_next(request)
