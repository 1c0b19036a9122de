"""Admin hook: run one expiry sweep on demand (external schedulers, ops)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from src.qm_common.enums import Role
from src.qm_common.response import ApiResponse, success_response
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.dependencies import require_role
from src.qm_sweeper.sweeper import get_sweeper

router = APIRouter(prefix="/admin", tags=["admin"])


class SweepResponse(BaseModel):
    expired_requests: list[str]
    expired_quotes: int
    skipped: int
    failed: list[str]


@router.post("/sweep")
async def sweep_now(
    _admin: Annotated[Actor, Depends(require_role(Role.ADMIN))],
    request: Request,
) -> ApiResponse:
    result = await get_sweeper().sweep_expired()
    data = SweepResponse(
        expired_requests=result.expired_requests,
        expired_quotes=result.expired_quotes,
        skipped=result.skipped,
        failed=result.failed,
    )
    return success_response(data.model_dump(), request)
