from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from faircoin.airdrop.builder import build_airdrop
from faircoin.airdrop.eligibility_store import open_store
from faircoin.api.config import ServiceConfig
from faircoin.testing.accounts import deterministic_address, make_addresses


def _cfg(tmp_path: Path, **overrides) -> ServiceConfig:
    base = dict(
        mode="dev",
        db_path=str(tmp_path / "airdrop.db"),
        airdrop_path=str(tmp_path / "airdrop.json"),
        api_host="127.0.0.1",
        api_port=4173,
        cors_origins="",
        log_level="INFO",
    )
    base.update(overrides)
    return ServiceConfig(**base)


@pytest.fixture()
def payload():
    return build_airdrop(make_addresses(4, prefix="api"))


@pytest.fixture()
def client(tmp_path: Path, payload):
    (tmp_path / "airdrop.json").write_text(json.dumps(payload), encoding="utf-8")
    from faircoin.api.app import create_app

    app = create_app(cfg=_cfg(tmp_path))
    with TestClient(app) as c:
        yield c


def test_member_gets_stored_proof(client: TestClient, payload) -> None:
    claim = payload["claims"][1]
    r = client.get("/api/eligibility", params={"address": claim["address"]})
    assert r.status_code == 200
    body = r.json()
    assert body == {
        "qualified": True,
        "address": claim["address"].lower(),
        "merkleRoot": payload["merkleRoot"],
        "claimAmount": "100",
        "proof": claim["proof"],
    }


def test_outsider_not_qualified(client: TestClient) -> None:
    r = client.get("/api/eligibility", params={"address": deterministic_address(label="outsider")})
    assert r.status_code == 200
    assert r.json()["qualified"] is False
    assert r.json()["proof"] == []


@pytest.mark.parametrize("address", ["", "0x1234", "hello"])
def test_malformed_address_is_400(client: TestClient, address: str) -> None:
    r = client.get("/api/eligibility", params={"address": address})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid address", "code": "invalid_address"}


def test_missing_address_param_is_400(client: TestClient) -> None:
    r = client.get("/api/eligibility")
    assert r.status_code == 400


def test_unseeded_store_reports_root_not_set(tmp_path: Path) -> None:
    from faircoin.api.app import create_app

    # No airdrop.json on disk: the store boots empty.
    app = create_app(cfg=_cfg(tmp_path))
    with TestClient(app) as c:
        r = c.get("/api/eligibility", params={"address": deterministic_address(label="x")})
        assert r.status_code == 500
        assert r.json()["code"] == "root_not_set"
        assert c.get("/v1/health").json() == {"ok": True, "service": "faircoin-eligibility", "seeded": False}


def test_boot_store_false_does_not_attach_store(tmp_path: Path) -> None:
    from faircoin.api.app import create_app

    app = create_app(cfg=_cfg(tmp_path), boot_store=False)
    assert getattr(app.state, "store", None) is None
    with TestClient(app) as c:
        r = c.get("/api/eligibility", params={"address": deterministic_address(label="x")})
        assert r.status_code == 500
        assert r.json()["code"] == "not_ready"


def test_injected_store_and_health(tmp_path: Path, payload) -> None:
    from faircoin.api.app import create_app

    store = open_store(str(tmp_path / "other.db"))
    store.seed(payload)
    app = create_app(cfg=_cfg(tmp_path), store=store)
    with TestClient(app) as c:
        assert c.get("/v1/health").json()["seeded"] is True


def test_build_store_can_be_monkeypatched(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, payload) -> None:
    from faircoin.api import app as api_app

    calls = []

    def _fake_build_store(cfg):
        calls.append(cfg.db_path)
        s = open_store(str(tmp_path / "fake.db"))
        s.seed(payload)
        return s

    monkeypatch.setattr(api_app, "build_store", _fake_build_store)
    app = api_app.create_app(cfg=_cfg(tmp_path))
    assert calls == [str(tmp_path / "airdrop.db")]
    assert app.state.store.is_seeded()


def test_request_id_header_echoed(client: TestClient) -> None:
    r = client.get("/v1/health", headers={"x-request-id": "abc-123"})
    assert r.headers.get("x-request-id") == "abc-123"


def _access_lines(caplog: pytest.LogCaptureFixture):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == "faircoin.http"]


def test_access_log_carries_lookup_outcome(client: TestClient, payload, caplog: pytest.LogCaptureFixture) -> None:
    member = payload["claims"][0]["address"]
    with caplog.at_level(logging.INFO, logger="faircoin.http"):
        client.get("/api/eligibility", params={"address": member}, headers={"x-request-id": "look-1"})
        client.get("/api/eligibility", params={"address": deterministic_address(label="stranger")})
        client.get("/api/eligibility", params={"address": "0x1234"})
        client.get("/v1/health")

    lines = _access_lines(caplog)
    assert [ln.get("lookup") for ln in lines] == ["qualified", "not_qualified", "invalid_address", None]
    assert [ln["status"] for ln in lines] == [200, 200, 400, 200]
    assert lines[0]["request_id"] == "look-1"
    assert lines[0]["event"] == "http_request"
    assert lines[0]["path"] == "/api/eligibility"


def test_access_log_flags_missing_store(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    from faircoin.api.app import create_app

    app = create_app(cfg=_cfg(tmp_path), boot_store=False)
    with TestClient(app) as c, caplog.at_level(logging.INFO, logger="faircoin.http"):
        r = c.get("/api/eligibility", params={"address": deterministic_address(label="any")})
    assert r.status_code == 500
    (line,) = _access_lines(caplog)
    assert line["lookup"] == "not_ready"
    assert line["status"] == 500


def test_docs_disabled_in_prod(tmp_path: Path) -> None:
    from faircoin.api.app import create_app

    app = create_app(cfg=_cfg(tmp_path, mode="prod"), boot_store=False)
    with TestClient(app) as c:
        assert c.get("/docs").status_code == 404

    app = create_app(cfg=_cfg(tmp_path, mode="dev"), boot_store=False)
    with TestClient(app) as c:
        assert c.get("/docs").status_code == 200


def test_cors_allowlist(tmp_path: Path) -> None:
    from faircoin.api.app import create_app

    app = create_app(cfg=_cfg(tmp_path, cors_origins="http://localhost:5173"), boot_store=False)
    with TestClient(app) as c:
        r = c.get("/v1/health", headers={"Origin": "http://localhost:5173"})
        assert r.headers.get("access-control-allow-origin") == "http://localhost:5173"
        r = c.get("/v1/health", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in r.headers
