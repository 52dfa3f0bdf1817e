# src/faircoin/ledger/constants.py
from __future__ import annotations

"""FAIR monetary constants.

- Fixed-point "WAD" convention: 1 FAIR = 1e18 base units
- Hard supply ceiling: 1,000,000,000 FAIR
- Each allowlisted address claims 100 FAIR once, split 95 (claimer) / 5 (pool)
- Sell fee: 0.1% of the input amount, routed to the founder
"""

TOKEN_NAME: str = "Fair Coin"
TOKEN_SYMBOL: str = "FAIR"

# Monetary precision (1 FAIR = 1e18 units)
TOKEN_DECIMALS: int = 18
WAD: int = 10**TOKEN_DECIMALS

# Supply cap: 1,000,000,000 FAIR
MAX_SUPPLY_FAIR: int = 1_000_000_000
MAX_SUPPLY: int = MAX_SUPPLY_FAIR * WAD

# Claim split
CLAIM_AMOUNT_FAIR: int = 100
CLAIM_AMOUNT: int = CLAIM_AMOUNT_FAIR * WAD
CLAIM_USER_SHARE: int = 95 * WAD
CLAIM_POOL_SHARE: int = CLAIM_AMOUNT - CLAIM_USER_SHARE

# 1/1000 = 0.1%
FEE_DENOMINATOR: int = 1000
MIN_FEE: int = 1

# All on-ledger quantities are uint256.
UINT256_MAX: int = 2**256 - 1
