"""Device session endpoints: list the signed-in devices and sign them out."""

from typing import Annotated

from fastapi import APIRouter, Path

from cardvault.adapters.api.v1.auth.dependencies import BearerToken, CurrentAccount
from cardvault.adapters.api.v1.auth.schemas import MessageResponse, SessionListOut, SessionOut
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()

SessionId = Annotated[str, Path(min_length=1, max_length=128)]

NOT_FOUND = {404: {"description": "No such session for the current account"}}


@router.get("", response_model=SessionListOut, summary="Signed-in devices of the current account")
async def list_sessions(
    account: CurrentAccount,
    access_token: BearerToken,
    auth_service: AuthServiceDep,
) -> SessionListOut:
    current = auth_service.current_session_id(access_token)
    sessions = [SessionOut.from_domain(s, current) for s in await auth_service.list_sessions(account.id)]
    return SessionListOut(sessions=sessions, total=len(sessions))


@router.delete("", response_model=MessageResponse, summary="Sign out every device")
async def revoke_all_sessions(account: CurrentAccount, auth_service: AuthServiceDep) -> MessageResponse:
    """The device making the request is signed out too."""
    await auth_service.revoke_all_sessions(account.id)
    return MessageResponse(message="All sessions deleted successfully")


@router.get("/{session_id}", response_model=SessionOut, summary="One signed-in device", responses=NOT_FOUND)
async def get_session(
    session_id: SessionId,
    account: CurrentAccount,
    access_token: BearerToken,
    auth_service: AuthServiceDep,
) -> SessionOut:
    session = await auth_service.get_session(account.id, session_id)
    return SessionOut.from_domain(session, auth_service.current_session_id(access_token))


@router.delete("/{session_id}", response_model=MessageResponse, summary="Sign out one device", responses=NOT_FOUND)
async def revoke_session(session_id: SessionId, account: CurrentAccount, auth_service: AuthServiceDep) -> MessageResponse:
    await auth_service.revoke_session(account.id, session_id)
    return MessageResponse(message="Session deleted successfully")
