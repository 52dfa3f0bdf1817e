from __future__ import annotations

"""Pydantic response schemas for the eligibility API.

Field names follow the airdrop.json payload (camelCase) so the claim UI can
pass the response straight through to the contract call.
"""

from typing import List

from pydantic import BaseModel, Field


class EligibilityResponse(BaseModel):
    qualified: bool = Field(..., description="Address is in the allowlist")
    address: str = Field(..., description="Lowercased 0x address")
    merkleRoot: str = Field(..., description="0x-hex root the proofs fold to")
    claimAmount: str = Field(..., description="Whole FAIR claimed per address")
    proof: List[str] = Field(default_factory=list, description="0x-hex sibling hashes")


class HealthResponse(BaseModel):
    ok: bool
    service: str
    seeded: bool
