from fastapi import APIRouter

from cardvault.adapters.api.v1.auth.dependencies import CurrentAccount
from cardvault.adapters.api.v1.auth.schemas import AccountOut

router = APIRouter()


@router.get("", response_model=AccountOut, summary="The current account")
async def read_current_account(account: CurrentAccount) -> AccountOut:
    return AccountOut.model_validate(account)
