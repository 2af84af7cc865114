"""Logout endpoint.

Always answers 204: missing, malformed or already revoked tokens are not an
error, and store failures are logged by the service. The body is read by hand
so an unreadable or oddly shaped payload never turns into a 400.
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, Request, Response, status
from structlog import get_logger

from cardvault.adapters.api.v1.auth.dependencies import BearerToken
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

logger = get_logger(__name__)

router = APIRouter()

LOGOUT_BODY_SCHEMA = {
    "content": {
        "application/json": {
            "schema": {
                "type": "object",
                "properties": {"refresh_token": {"type": "string"}},
            }
        }
    },
    "required": False,
}


async def _refresh_token_from_body(request: Request) -> Optional[str]:
    body = await request.body()
    if not body:
        return None
    try:
        payload: Any = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        logger.debug("Logout body is not JSON")
        return None
    if not isinstance(payload, dict):
        return None
    refresh_token = payload.get("refresh_token")
    return refresh_token if isinstance(refresh_token, str) and refresh_token else None


@router.post(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Log out",
    openapi_extra={"requestBody": LOGOUT_BODY_SCHEMA},
)
async def logout(request: Request, access_token: BearerToken, auth_service: AuthServiceDep) -> Response:
    refresh_token = await _refresh_token_from_body(request)
    await auth_service.logout(access_token, refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
