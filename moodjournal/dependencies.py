"""
Shared FastAPI dependencies.

Service objects are built once (main.py) and stored on app.state; these
functions hand them to route handlers. Tests replace them through
app.dependency_overrides.

- get_current_user_id(): the user id verified by auth.require_bearer_token.
"""

from fastapi import HTTPException, Request, status

from .config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_classifier(request: Request):
    return request.app.state.classifier


def get_entry_store(request: Request):
    store = getattr(request.app.state, "entry_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Database connection failed.")
    return store


def get_recap_store(request: Request):
    store = getattr(request.app.state, "recap_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Database connection failed.")
    return store


def get_recap_generator(request: Request):
    return request.app.state.recap_generator


def get_current_user_id(request: Request) -> str:
    """Caller's user id. Raises 401 if the bearer middleware did not authenticate the request."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
