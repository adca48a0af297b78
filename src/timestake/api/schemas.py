"""Pydantic request schemas for the pool API.

These exist only for HTTP input validation; the ledger re-checks every value.
`now` is accepted outside prod mode so operators can replay a timeline.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class FundRequest(BaseModel):
    caller: str = Field(..., min_length=1, description="Administrator account id")
    total_reward: int = Field(..., ge=0, description="Reward asset amount, native units")
    start_time: int = Field(..., ge=0, description="Unix seconds")
    end_time: int = Field(..., ge=0, description="Unix seconds")
    now: Optional[int] = Field(default=None, ge=0)


class StakeRequest(BaseModel):
    participant: str = Field(..., min_length=1)
    amounts: List[int] = Field(..., min_length=3, max_length=3, description="Native units per stake asset slot")
    now: Optional[int] = Field(default=None, ge=0)


class ParticipantRequest(BaseModel):
    participant: str = Field(..., min_length=1)
    now: Optional[int] = Field(default=None, ge=0)


class RescueRequest(BaseModel):
    caller: str = Field(..., min_length=1)
    asset_id: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
    now: Optional[int] = Field(default=None, ge=0)


class MintRequest(BaseModel):
    asset_id: str = Field(..., min_length=1)
    holder: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
