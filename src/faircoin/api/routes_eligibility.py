# src/faircoin/api/routes_eligibility.py
from __future__ import annotations

from fastapi import APIRouter, Request

from faircoin.airdrop.eligibility_store import EligibilityStore
from faircoin.api.errors import ApiError
from faircoin.api.schemas import EligibilityResponse, HealthResponse
from faircoin.api.structured_logging import set_lookup_outcome

router = APIRouter()


def _store(request: Request) -> EligibilityStore:
    st = getattr(request.app.state, "store", None)
    if st is None:
        set_lookup_outcome(request, "not_ready")
        raise ApiError.internal("not_ready", "eligibility store not attached to app.state", {})
    return st


@router.get("/api/eligibility", response_model=EligibilityResponse)
def api_eligibility(request: Request, address: str = ""):
    """
    Lookup rule:
      - address must be 0x + 40 hex chars (case-insensitive)
      - qualified iff the address has a stored proof
    """
    st = _store(request)
    addr = str(address or "").strip().lower()
    try:
        res = st.lookup(addr)
    except ValueError:
        set_lookup_outcome(request, "invalid_address")
        raise ApiError.bad_request("invalid_address", "Invalid address", {})
    except LookupError:
        set_lookup_outcome(request, "root_not_set")
        raise ApiError.internal("root_not_set", "Root not set", {})
    set_lookup_outcome(request, "qualified" if res.qualified else "not_qualified")
    return res.to_json()


@router.get("/v1/health", response_model=HealthResponse)
def v1_health(request: Request):
    st = getattr(request.app.state, "store", None)
    return {"ok": True, "service": "faircoin-eligibility", "seeded": bool(st is not None and st.is_seeded())}
