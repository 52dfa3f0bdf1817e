# src/faircoin/airdrop/eligibility_store.py
from __future__ import annotations

import json
import logging
import os
import random
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List

from faircoin.ledger.address import is_address
from faircoin.runtime.runtime_logging import log_event

Json = Dict[str, Any]

_log = logging.getLogger("faircoin.eligibility")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "")).strip()
        return int(raw) if raw else int(default)
    except ValueError:
        return int(default)


@dataclass(frozen=True)
class Eligibility:
    qualified: bool
    address: str
    merkle_root: str
    claim_amount: str
    proof: List[str] = field(default_factory=list)

    def to_json(self) -> Json:
        return {
            "qualified": self.qualified,
            "address": self.address,
            "merkleRoot": self.merkle_root,
            "claimAmount": self.claim_amount,
            "proof": list(self.proof),
        }


class EligibilityDB:
    """SQLite manager for the eligibility lookup service.

    Design goals:
      - single DB file holding the Merkle root and the precomputed proofs
      - cross-thread safe by never sharing connections
      - bounded retry when another writer holds the lock
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str) -> None:
        self.path = str(path)

    def ensure_parent_dir(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        self.ensure_parent_dir()

        connect_timeout_s = float(_env_int("FAIRCOIN_SQLITE_CONNECT_TIMEOUT_MS", 30_000)) / 1000.0
        con = sqlite3.connect(
            self.path,
            timeout=connect_timeout_s,
            isolation_level=None,  # we manage BEGIN/COMMIT ourselves
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row

        con.execute("PRAGMA journal_mode=WAL;")
        con.execute("PRAGMA foreign_keys=ON;")
        busy_ms = max(0, _env_int("FAIRCOIN_SQLITE_BUSY_TIMEOUT_MS", int(connect_timeout_s * 1000)))
        con.execute(f"PRAGMA busy_timeout={busy_ms};")
        return con

    def init_schema(self) -> None:
        with self.write_tx() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS merkle_root (
                  id INTEGER PRIMARY KEY CHECK (id = 1),
                  root TEXT NOT NULL,
                  claim_amount TEXT NOT NULL,
                  seeded_ts_ms INTEGER NOT NULL
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS claims (
                  address TEXT PRIMARY KEY,
                  proof TEXT NOT NULL
                );
                """
            )

            row = con.execute("SELECT value FROM meta WHERE key='schema_version' LIMIT 1;").fetchone()
            if row is None:
                con.execute("INSERT INTO meta(key, value) VALUES('schema_version', ?);", (str(self.SCHEMA_VERSION),))
            else:
                try:
                    v = int(str(row["value"]))
                except ValueError:
                    v = 0
                if v != self.SCHEMA_VERSION:
                    raise RuntimeError(
                        f"sqlite schema_version mismatch: have={v} want={self.SCHEMA_VERSION}. "
                        "Refuse to start to avoid corrupting data."
                    )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._connect()
        try:
            yield con
        finally:
            con.close()

    @staticmethod
    def _is_locked_error(e: Exception) -> bool:
        msg = str(e).lower()
        return ("database is locked" in msg) or ("database is busy" in msg)

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction, retrying BEGIN IMMEDIATE with jittered backoff until a deadline."""
        deadline_ts = _now_ms() + max(250, _env_int("FAIRCOIN_SQLITE_WRITE_DEADLINE_MS", 30_000))
        base_sleep = 0.005
        max_sleep = 0.25

        with self.connection() as con:
            attempt = 0
            while True:
                try:
                    con.execute("BEGIN IMMEDIATE;")
                    break
                except sqlite3.OperationalError as e:
                    if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                        raise
                    sleep_s = min(max_sleep, base_sleep * (2.0 ** min(attempt, 8)))
                    time.sleep(sleep_s * (0.5 + random.random()))
                    attempt += 1

            try:
                yield con
                con.execute("COMMIT;")
            except Exception:
                con.execute("ROLLBACK;")
                raise


class EligibilityStore:
    """Precomputed allowlist lookups.

    - seed_from_airdrop(path): load root + proofs once (no-op if already seeded)
    - lookup(address): qualified flag and proof for one address
    """

    def __init__(self, *, db: EligibilityDB) -> None:
        self._db = db
        self._db.init_schema()

    def is_seeded(self) -> bool:
        with self._db.connection() as con:
            return con.execute("SELECT 1 FROM merkle_root WHERE id=1;").fetchone() is not None

    def seed(self, payload: Json) -> int:
        root = str(payload.get("merkleRoot") or "").strip().lower()
        if not root:
            raise ValueError("airdrop payload has no merkleRoot")
        claim_amount = str(payload.get("claimAmount") or "100")
        claims = payload.get("claims") or []
        if not isinstance(claims, list):
            raise ValueError("airdrop payload claims must be a list")

        rows = []
        for i, c in enumerate(claims):
            addr = c.get("address") if isinstance(c, dict) else None
            if not is_address(addr):
                raise ValueError(f"Invalid claim at index {i}: invalid address format")
            proof = c.get("proof") or []
            if not isinstance(proof, list):
                raise ValueError(f"Invalid claim at index {i}: missing proof array")
            rows.append((str(addr).strip().lower(), json.dumps(proof)))

        with self._db.write_tx() as con:
            if con.execute("SELECT 1 FROM merkle_root WHERE id=1;").fetchone() is not None:
                return 0
            con.execute(
                "INSERT INTO merkle_root(id, root, claim_amount, seeded_ts_ms) VALUES(1, ?, ?, ?);",
                (root, claim_amount, _now_ms()),
            )
            con.executemany("INSERT INTO claims(address, proof) VALUES(?, ?);", rows)

        log_event(_log, "eligibility_seeded", merkle_root=root, claims=len(rows))
        return len(rows)

    def seed_from_airdrop(self, path: str | Path) -> int:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("airdrop payload must be a JSON object")
        return self.seed(raw)

    def lookup(self, address: str) -> Eligibility:
        addr = str(address or "").strip().lower()
        if not is_address(addr):
            raise ValueError("Invalid address")

        with self._db.connection() as con:
            root_row = con.execute("SELECT root, claim_amount FROM merkle_root WHERE id=1;").fetchone()
            if root_row is None:
                raise LookupError("Root not set")
            claim_row = con.execute("SELECT proof FROM claims WHERE address=?;", (addr,)).fetchone()

        return Eligibility(
            qualified=claim_row is not None,
            address=addr,
            merkle_root=str(root_row["root"]),
            claim_amount=str(root_row["claim_amount"]),
            proof=json.loads(str(claim_row["proof"])) if claim_row is not None else [],
        )

    def count(self) -> int:
        with self._db.connection() as con:
            row = con.execute("SELECT COUNT(*) AS n FROM claims;").fetchone()
            return int(row["n"]) if row is not None else 0


def open_store(db_path: str) -> EligibilityStore:
    return EligibilityStore(db=EligibilityDB(path=db_path))


__all__ = ["Eligibility", "EligibilityDB", "EligibilityStore", "open_store"]
