"""
Login/logout for the single shared PIN. The session cookie itself is issued
and signed by SessionMiddleware; these routes only flip its contents.
"""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from app.api.schemas import LoginRequest, OkResponse
from app.config import Settings, get_settings
from app.errors import AuthError
from app.services.security import destroy_session, mark_authenticated, verify_pin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sessions"])


async def read_pin(request: Request) -> str | None:
    """Pulls a str or int `pin` out of the JSON body; anything else yields None."""
    try:
        payload = await request.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        req = LoginRequest.model_validate(payload)
    except PydanticValidationError:
        return None
    return str(req.pin) if req.pin is not None else None


@router.post("/login", response_model=OkResponse)
async def login(request: Request, settings: Settings = Depends(get_settings)):
    """Body is {"pin": "..."}. A malformed body is answered like a wrong PIN."""
    candidate = await read_pin(request)
    if not verify_pin(candidate, settings.app_pin):
        logger.info("Rejected login attempt")
        raise AuthError("Invalid PIN")

    mark_authenticated(request)
    logger.info("Session authenticated")
    return OkResponse()


@router.post("/logout", response_model=OkResponse)
async def logout(request: Request):
    destroy_session(request)
    return OkResponse()


@router.get("/ping", response_model=OkResponse)
async def ping():
    return OkResponse()
