"""Ticket status, single-use redemption, scan audit log and the QR landing."""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from tapreview.core.database import engine
from tapreview.core.security import utcnow
from tapreview.models import ScanLog, Ticket, TicketStatus
from tapreview.services import tickets as tickets_service
from tapreview.services.tickets import derive_status


@pytest.fixture
def code(client: TestClient, owner: dict, active_promo: dict) -> str:
    r = client.post(
        f"/public/{owner['username']}/claim",
        json={"name": "Jane", "surname": "Doe", "email": "jane@example.com"},
    )
    assert r.status_code == 200, r.text
    return r.json()["code"]


def _expire(code: str) -> None:
    with Session(engine) as session:
        ticket = session.exec(select(Ticket).where(Ticket.code == code)).one()
        ticket.expires_at = utcnow() - timedelta(days=1)
        session.add(ticket)
        session.commit()


def _scan_logs(code: str) -> list[ScanLog]:
    with Session(engine) as session:
        return list(session.exec(select(ScanLog).where(ScanLog.code == code).order_by(ScanLog.id)).all())


def test_status_valid(client: TestClient, code: str):
    r = client.get(f"/tickets/{code}/status")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "valid"
    assert j["expiresAt"]
    assert j["promo"] == {"title": "Free coffee", "description": "One espresso on us", "type": "gift"}


def test_status_is_read_only(client: TestClient, code: str):
    for _ in range(3):
        assert client.get(f"/tickets/{code}/status").json()["status"] == "valid"
    assert _scan_logs(code) == []


def test_status_not_found(client: TestClient):
    r = client.get("/tickets/NOPE000000/status")
    assert r.status_code == 404
    assert r.json() == {"status": "not_found"}


def test_redeem_once(client: TestClient, code: str):
    r = client.post(f"/tickets/{code}/use")
    assert r.status_code == 200
    first = r.json()
    assert first["result"] == "valid"
    assert first["status"] == "used"
    assert first["usedAt"]

    r = client.post(f"/tickets/{code}/use")
    assert r.status_code == 200
    second = r.json()
    assert second["result"] == "used"
    assert second["status"] == "used"
    assert second["usedAt"] == first["usedAt"]

    status = client.get(f"/tickets/{code}/status").json()
    assert status["status"] == "used"
    assert status["usedAt"] == first["usedAt"]

    assert [log.result for log in _scan_logs(code)] == ["valid", "used"]


def test_redeem_code_is_case_insensitive(client: TestClient, code: str):
    r = client.post(f"/tickets/{code.lower()}/use")
    assert r.json()["result"] == "valid"


def test_redeem_records_scanner(client: TestClient, owner: dict, code: str):
    client.post(f"/tickets/{code}/use", headers={**owner["headers"], "User-Agent": "door-scanner/1.0"})
    logs = _scan_logs(code)
    assert len(logs) == 1
    assert logs[0].user_id == owner["id"]
    assert logs[0].meta == "door-scanner/1.0"
    assert logs[0].ticket_id is not None


def test_expired_ticket(client: TestClient, code: str):
    _expire(code)
    assert client.get(f"/tickets/{code}/status").json()["status"] == "expired"

    r = client.post(f"/tickets/{code}/use")
    assert r.status_code == 200
    assert r.json()["result"] == "expired"
    assert r.json()["status"] == "expired"
    with Session(engine) as session:
        ticket = session.exec(select(Ticket).where(Ticket.code == code)).one()
        assert ticket.status == TicketStatus.ACTIVE
        assert ticket.used_at is None
    assert [log.result for log in _scan_logs(code)] == ["expired"]


def test_used_then_expired_reports_expired(client: TestClient, code: str):
    client.post(f"/tickets/{code}/use")
    _expire(code)
    assert client.get(f"/tickets/{code}/status").json()["status"] == "expired"


def test_extending_promo_does_not_move_ticket_expiry(client: TestClient, owner: dict, active_promo: dict, code: str):
    before = client.get(f"/tickets/{code}/status").json()["expiresAt"]
    new_end = datetime.fromisoformat(active_promo["endAt"]) + timedelta(days=30)
    r = client.patch(f"/promos/{active_promo['id']}", json={"endAt": new_end.isoformat()}, headers=owner["headers"])
    assert r.status_code == 200
    assert client.get(f"/tickets/{code}/status").json()["expiresAt"] == before


def test_redeem_unknown_code(client: TestClient):
    r = client.post("/tickets/does-not-exist/use")
    assert r.status_code == 404
    assert r.json() == {"status": "not_found", "result": "not_found"}
    logs = _scan_logs("DOES-NOT-EXIST")
    assert logs
    assert logs[-1].result == "not_found"
    assert logs[-1].ticket_id is None


def test_qr_landing(client: TestClient, code: str):
    r = client.get(f"/q/{code}")
    assert r.status_code == 200
    j = r.json()
    assert j["ok"] is True
    assert j["status"] == "ACTIVE"
    assert j["promo"]["title"] == "Free coffee"

    client.post(f"/tickets/{code}/use")
    r = client.get(f"/q/{code}")
    assert r.status_code == 410
    assert r.json()["status"] == "used"

    assert client.get("/q/UNKNOWN123").status_code == 404


def test_qr_landing_expired(client: TestClient, code: str):
    _expire(code)
    r = client.get(f"/q/{code}")
    assert r.status_code == 410
    assert r.json()["error"] == "Code expired."


def test_scanner_lookup_owner_only(client: TestClient, owner: dict, other_owner: dict, code: str):
    r = client.get(f"/tickets/{code}", headers=owner["headers"])
    assert r.status_code == 200
    j = r.json()
    assert j["code"] == code
    assert j["status"] == "valid"
    assert j["customerEmail"] == "jane@example.com"
    assert j["customerSurname"] == "Doe"
    assert j["usedAt"] is None

    assert client.get(f"/tickets/{code}", headers=other_owner["headers"]).status_code == 404
    assert client.get(f"/tickets/{code}").status_code == 401
    assert _scan_logs(code) == []


def test_scan_log_survives_promo_delete(client: TestClient, owner: dict, active_promo: dict, code: str):
    client.post(f"/tickets/{code}/use")
    r = client.delete(f"/promos/{active_promo['id']}", headers=owner["headers"])
    assert r.status_code == 200
    assert [log.result for log in _scan_logs(code)] == ["valid"]
    assert client.get(f"/tickets/{code}/status").status_code == 404


def test_derive_status_order():
    now = utcnow()
    assert derive_status(None, now) == "not_found"
    ticket = Ticket(promo_id=1, customer_email="a@example.com", code="ABCDEFGHJK", qr_url="x", expires_at=now + timedelta(hours=1))
    assert derive_status(ticket, now) == "valid"
    ticket.status = TicketStatus.USED
    assert derive_status(ticket, now) == "used"
    ticket.expires_at = now - timedelta(seconds=1)
    assert derive_status(ticket, now) == "expired"
    ticket.status = TicketStatus.ACTIVE
    assert derive_status(ticket, now) == "expired"
    ticket.expires_at = None
    assert derive_status(ticket, now) == "valid"


def test_concurrent_redeem_has_one_winner(client: TestClient, code: str, monkeypatch):
    """A second scanner redeems between our read and our update: we must report used, not valid."""
    load = tickets_service._load
    rival = []

    def load_then_rival_redeems(db, c):
        row = load(db, c)
        monkeypatch.setattr(tickets_service, "_load", load)
        with Session(engine) as other:
            rival.append(tickets_service.redeem(other, c).result)
        return row

    monkeypatch.setattr(tickets_service, "_load", load_then_rival_redeems)
    with Session(engine) as db:
        late = tickets_service.redeem(db, code)
        assert late.result == "used"
        assert late.state.status == "used"

    assert rival == ["valid"]
    with Session(engine) as session:
        ticket = session.exec(select(Ticket).where(Ticket.code == code)).one()
        assert ticket.status == TicketStatus.USED
        assert ticket.used_at is not None
    assert [log.result for log in _scan_logs(code)] == ["valid", "used"]


def test_redeem_survives_scan_log_failure(client: TestClient, code: str, monkeypatch):
    def broken_scan_log(**kwargs):
        raise OperationalError("INSERT INTO scan_logs", {}, Exception("disk I/O error"))

    monkeypatch.setattr(tickets_service, "ScanLog", broken_scan_log)
    r = client.post(f"/tickets/{code}/use")
    assert r.status_code == 200
    assert r.json()["result"] == "valid"
    assert r.json()["status"] == "used"
    assert _scan_logs(code) == []
    assert client.get(f"/tickets/{code}/status").json()["status"] == "used"
