"""Reference endpoint: GET /reference/omg."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from omglang.omg_reference import OMG_REFERENCE

router = APIRouter()


class ReferenceResponse(BaseModel):
    """Response for GET /reference/omg."""

    reference: str = Field(description="OMG language reference text")


@router.get("/omg", response_model=ReferenceResponse)
async def get_omg_reference() -> ReferenceResponse:
    """Return the full OMG language reference."""
    return ReferenceResponse(reference=OMG_REFERENCE)
