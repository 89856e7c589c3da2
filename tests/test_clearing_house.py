"""Clearing-house transaction workflow: validation, negotiation, payment and audit log."""

from datetime import datetime

import pytest
from httpx import AsyncClient

from portal.services.clearing_house import integrity_hash
from tests.conftest import API

CH = f"{API}/clearing-house"


@pytest.fixture
async def txn(client: AsyncClient, participants) -> dict:
    resp = await client.post(
        f"{CH}/transactions",
        json={
            "transactionType": "DATA_EXCHANGE",
            "initiatorId": participants["consumer"],
            "providerId": participants["provider"],
            "consumerId": participants["consumer"],
            "totalAmount": 1500,
            "currency": "USD",
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _validate(client: AsyncClient, txn_id: str, validator: str, decision: str = "APPROVE"):
    return await client.post(
        f"{CH}/transactions/{txn_id}/validate",
        json={
            "validationType": "COMPLIANCE",
            "validatorRole": "REGULATOR",
            "validatorId": validator,
            "decision": decision,
            "reasoning": "checked",
        },
    )


async def _events(client: AsyncClient, txn_id: str) -> list[str]:
    entries = (await client.get(f"{CH}/transactions/{txn_id}/audit-logs")).json()["data"]
    return [e["eventType"] for e in entries]


async def test_create_defaults_and_audit(client: AsyncClient, txn):
    assert txn["status"] == "INITIATED"
    assert txn["requiredApprovals"] == 2
    assert txn["currentApprovals"] == 0
    assert txn["complianceLevel"] == "STANDARD"
    assert await _events(client, txn["id"]) == ["TRANSACTION_INITIATED"]


async def test_unknown_parties_rejected(client: AsyncClient, participants):
    resp = await client.post(
        f"{CH}/transactions",
        json={
            "transactionType": "LICENSE_PURCHASE",
            "initiatorId": "ghost",
            "providerId": participants["provider"],
            "consumerId": participants["consumer"],
        },
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == ["initiatorId 'ghost' does not exist"]


async def test_audit_entries_carry_integrity_hash(client: AsyncClient, txn):
    entry = (await client.get(f"{CH}/transactions/{txn['id']}/audit-logs")).json()["data"][0]
    expected = integrity_hash(
        entry["transactionId"],
        entry["eventType"],
        entry["eventDescription"],
        datetime.fromisoformat(entry["timestamp"]),
    )
    assert entry["integrityHash"] == expected
    assert len(expected) == 64


async def test_approvals_reach_threshold(client: AsyncClient, participants, txn):
    resp = await _validate(client, txn["id"], participants["admin"])
    assert resp.status_code == 201
    result = resp.json()["data"]
    assert result["validation"]["status"] == "APPROVED"
    assert result["transaction"]["currentApprovals"] == 1
    assert result["transaction"]["status"] == "VALIDATING"

    # Same validator cannot approve twice
    assert (await _validate(client, txn["id"], participants["admin"])).status_code == 409

    resp = await _validate(client, txn["id"], participants["provider"])
    approved = resp.json()["data"]["transaction"]
    assert approved["status"] == "APPROVED"
    assert approved["currentApprovals"] == 2

    events = await _events(client, txn["id"])
    assert events.count("VALIDATION_COMPLETED") == 2
    assert "TRANSACTION_APPROVED" in events


async def test_rejection_is_terminal(client: AsyncClient, participants, txn):
    resp = await _validate(client, txn["id"], participants["admin"], decision="REJECT")
    rejected = resp.json()["data"]["transaction"]
    assert rejected["status"] == "REJECTED"
    assert rejected["errorDetails"]["validatorId"] == participants["admin"]
    assert "TRANSACTION_FAILED" in await _events(client, txn["id"])

    assert (await _validate(client, txn["id"], participants["provider"])).status_code == 400


async def test_update_records_changed_fields(client: AsyncClient, txn):
    resp = await client.put(f"{CH}/transactions/{txn['id']}", json={"status": "COMPLETED", "priority": "HIGH"})
    updated = resp.json()["data"]
    assert updated["status"] == "COMPLETED"
    assert updated["completedAt"] is not None

    entries = (await client.get(f"{CH}/transactions/{txn['id']}/audit-logs")).json()["data"]
    change = next(e for e in entries if e["eventType"] == "STATUS_CHANGED")
    assert set(change["changedFields"]) >= {"status", "priority"}
    assert change["previousState"]["status"] == "INITIATED"
    assert change["newState"]["status"] == "COMPLETED"


async def test_delete_only_in_early_states(client: AsyncClient, participants, txn):
    await _validate(client, txn["id"], participants["admin"])  # -> VALIDATING
    assert (await client.delete(f"{CH}/transactions/{txn['id']}")).status_code == 400

    await client.put(f"{CH}/transactions/{txn['id']}", json={"status": "CANCELLED"})
    assert (await client.delete(f"{CH}/transactions/{txn['id']}")).status_code == 204
    assert (await client.get(f"{CH}/transactions/{txn['id']}")).status_code == 404
    assert "TRANSACTION_CANCELLED" in await _events(client, txn["id"])


async def test_negotiation_counter_then_accept(client: AsyncClient, participants, txn):
    resp = await client.post(
        f"{CH}/negotiations",
        json={
            "transactionId": txn["id"],
            "proposedByUserId": participants["provider"],
            "proposedTerms": {"price": 1500},
        },
    )
    assert resp.status_code == 201
    first = resp.json()["data"]
    assert first["round"] == 1
    assert first["status"] == "OPEN"

    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "NEGOTIATING"

    # COUNTER needs the counter offer itself
    resp = await client.post(
        f"{CH}/negotiations/{first['id']}/respond",
        json={"responseType": "COUNTER", "responseByUserId": participants["consumer"]},
    )
    assert resp.status_code == 400

    resp = await client.post(
        f"{CH}/negotiations/{first['id']}/respond",
        json={
            "responseType": "COUNTER",
            "responseByUserId": participants["consumer"],
            "counterOffer": {"price": 1200},
        },
    )
    counter = resp.json()["data"]
    assert counter["round"] == 2
    assert counter["proposalType"] == "COUNTER_OFFER"
    assert counter["proposedTerms"] == {"price": 1200}
    assert counter["previousTerms"] == {"price": 1500}
    assert counter["validUntil"] is not None

    # The countered round is closed
    resp = await client.post(
        f"{CH}/negotiations/{first['id']}/respond",
        json={"responseType": "ACCEPT", "responseByUserId": participants["consumer"]},
    )
    assert resp.status_code == 400

    resp = await client.post(
        f"{CH}/negotiations/{counter['id']}/respond",
        json={"responseType": "ACCEPT", "responseByUserId": participants["provider"]},
    )
    assert resp.json()["data"]["status"] == "ACCEPTED"

    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "PENDING_APPROVAL"
    assert detail["contractTerms"] == {"price": 1200}
    assert sorted(n["round"] for n in detail["negotiations"]) == [1, 2]

    events = await _events(client, txn["id"])
    assert {"NEGOTIATION_STARTED", "PROPOSAL_SUBMITTED", "PROPOSAL_RESPONDED"} <= set(events)

    listed = (await client.get(f"{CH}/negotiations", params={"transactionId": txn["id"], "status": "OPEN"})).json()
    assert listed["meta"]["total"] == 0


async def test_payments_complete_transaction(client: AsyncClient, participants, txn):
    payment_body = {
        "transactionId": txn["id"],
        "paymentType": "FULL",
        "paymentMethod": "BANK_TRANSFER",
        "amount": 1500,
        "currency": "USD",
        "payerUserId": participants["consumer"],
        "payeeUserId": participants["provider"],
        "processingFee": 10,
        "networkFee": 2.5,
    }
    # Not approved yet
    assert (await client.post(f"{CH}/payments", json=payment_body)).status_code == 400

    await _validate(client, txn["id"], participants["admin"])
    await _validate(client, txn["id"], participants["provider"])

    resp = await client.post(f"{CH}/payments", json=payment_body)
    assert resp.status_code == 201
    payment = resp.json()["data"]
    assert payment["status"] == "PENDING"
    assert payment["totalFees"] == 12.5
    assert len(payment["paymentHash"]) == 64

    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "EXECUTING"

    resp = await client.post(f"{CH}/payments/{payment['id']}/status", json={"status": "PROCESSING"})
    assert resp.json()["data"]["processedAt"] is not None

    resp = await client.post(f"{CH}/payments/{payment['id']}/status", json={"status": "COMPLETED"})
    assert resp.json()["data"]["settledAt"] is not None

    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "COMPLETED"
    assert detail["completedAt"] is not None
    events = await _events(client, txn["id"])
    assert {"PAYMENT_INITIATED", "PAYMENT_COMPLETED", "TRANSACTION_COMPLETED"} <= set(events)

    stats = (await client.get(f"{CH}/stats")).json()["data"]
    assert stats["totalTransactions"] == 1
    assert stats["completedTransactions"] == 1
    assert stats["totalValue"] == 1500.0
    assert stats["successRate"] == 100.0
    assert stats["byType"]["DATA_EXCHANGE"] == {"count": 1, "totalValue": 1500.0}
    assert stats["validationsByStatus"] == {"APPROVED": 2}
    assert stats["paymentsByMethod"] == {"BANK_TRANSFER": 1}


async def test_failed_payment_fails_transaction(client: AsyncClient, participants, txn):
    await _validate(client, txn["id"], participants["admin"])
    await _validate(client, txn["id"], participants["provider"])
    payment = (
        await client.post(
            f"{CH}/payments",
            json={
                "transactionId": txn["id"],
                "paymentType": "FULL",
                "paymentMethod": "CARD",
                "amount": 10,
                "currency": "USD",
                "payerUserId": participants["consumer"],
                "payeeUserId": participants["provider"],
            },
        )
    ).json()["data"]

    await client.post(
        f"{CH}/payments/{payment['id']}/status",
        json={"status": "FAILED", "errorDetails": {"reason": "card declined"}},
    )
    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "FAILED"
    assert detail["errorDetails"] == {"reason": "card declined"}

    stats = (await client.get(f"{CH}/stats")).json()["data"]
    assert stats["failedTransactions"] == 1
    assert stats["successRate"] == 0.0


async def test_list_filters_by_user(client: AsyncClient, participants, txn):
    listed = (await client.get(f"{CH}/transactions", params={"userId": participants["provider"]})).json()
    assert listed["meta"]["total"] == 1
    listed = (await client.get(f"{CH}/transactions", params={"userId": participants["admin"]})).json()
    assert listed["meta"]["total"] == 0


def _payment_body(txn_id: str, participants, amount: float = 10) -> dict:
    return {
        "transactionId": txn_id,
        "paymentType": "FULL",
        "paymentMethod": "CARD",
        "amount": amount,
        "currency": "USD",
        "payerUserId": participants["consumer"],
        "payeeUserId": participants["provider"],
    }


async def _propose(client: AsyncClient, txn_id: str, proposer: str):
    return await client.post(
        f"{CH}/negotiations",
        json={"transactionId": txn_id, "proposedByUserId": proposer, "proposedTerms": {"price": 900}},
    )


async def test_negotiation_on_terminal_transaction(client: AsyncClient, participants, txn):
    await client.put(f"{CH}/transactions/{txn['id']}", json={"status": "CANCELLED"})
    resp = await _propose(client, txn["id"], participants["provider"])
    assert resp.status_code == 400


async def test_accept_after_rejection_keeps_transaction_rejected(client: AsyncClient, participants, txn):
    offer = (await _propose(client, txn["id"], participants["provider"])).json()["data"]
    await _validate(client, txn["id"], participants["admin"], decision="REJECT")

    resp = await client.post(
        f"{CH}/negotiations/{offer['id']}/respond",
        json={"responseType": "ACCEPT", "responseByUserId": participants["consumer"]},
    )
    assert resp.status_code == 400

    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "REJECTED"
    assert detail["contractTerms"] is None
    assert [n["status"] for n in detail["negotiations"]] == ["OPEN"]


async def test_accept_on_approved_transaction_keeps_status(client: AsyncClient, participants, txn):
    offer = (await _propose(client, txn["id"], participants["provider"])).json()["data"]
    await _validate(client, txn["id"], participants["admin"])
    await _validate(client, txn["id"], participants["provider"])

    resp = await client.post(
        f"{CH}/negotiations/{offer['id']}/respond",
        json={"responseType": "ACCEPT", "responseByUserId": participants["consumer"]},
    )
    assert resp.status_code == 200
    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "APPROVED"
    assert detail["contractTerms"] == {"price": 900}


async def test_validation_refused_once_executing(client: AsyncClient, participants, txn):
    await _validate(client, txn["id"], participants["admin"])
    await _validate(client, txn["id"], participants["provider"])
    assert (await _validate(client, txn["id"], participants["consumer"])).status_code == 400

    await client.post(f"{CH}/payments", json=_payment_body(txn["id"], participants))
    resp = await _validate(client, txn["id"], participants["consumer"], decision="REJECT")
    assert resp.status_code == 400

    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "EXECUTING"
    assert detail["currentApprovals"] == 2


async def test_failed_payment_cannot_complete(client: AsyncClient, participants, txn):
    await _validate(client, txn["id"], participants["admin"])
    await _validate(client, txn["id"], participants["provider"])
    payment = (await client.post(f"{CH}/payments", json=_payment_body(txn["id"], participants))).json()["data"]

    await client.post(f"{CH}/payments/{payment['id']}/status", json={"status": "FAILED"})
    resp = await client.post(f"{CH}/payments/{payment['id']}/status", json={"status": "COMPLETED"})
    assert resp.status_code == 400

    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "FAILED"
    assert detail["completedAt"] is None
    assert "TRANSACTION_COMPLETED" not in await _events(client, txn["id"])


async def test_payment_status_moves(client: AsyncClient, participants, txn):
    await _validate(client, txn["id"], participants["admin"])
    await _validate(client, txn["id"], participants["provider"])
    payment = (await client.post(f"{CH}/payments", json=_payment_body(txn["id"], participants))).json()["data"]
    url = f"{CH}/payments/{payment['id']}/status"

    assert (await client.post(url, json={"status": "REFUNDED"})).status_code == 400
    assert (await client.post(url, json={"status": "COMPLETED"})).status_code == 200
    assert (await client.post(url, json={"status": "PROCESSING"})).status_code == 400
    resp = await client.post(url, json={"status": "REFUNDED"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "REFUNDED"


async def test_sibling_failure_after_failed_transaction(client: AsyncClient, participants, txn):
    await _validate(client, txn["id"], participants["admin"])
    await _validate(client, txn["id"], participants["provider"])
    first = (await client.post(f"{CH}/payments", json=_payment_body(txn["id"], participants))).json()["data"]
    second = (await client.post(f"{CH}/payments", json=_payment_body(txn["id"], participants, 5))).json()["data"]

    await client.post(
        f"{CH}/payments/{first['id']}/status",
        json={"status": "FAILED", "errorDetails": {"reason": "card declined"}},
    )
    # The other payment still settles, but the transaction stays failed
    resp = await client.post(f"{CH}/payments/{second['id']}/status", json={"status": "COMPLETED"})
    assert resp.status_code == 200
    detail = (await client.get(f"{CH}/transactions/{txn['id']}")).json()["data"]
    assert detail["status"] == "FAILED"
    assert detail["errorDetails"] == {"reason": "card declined"}
