"""
API tests for the back-office endpoints.

``client`` plays the client (or a second operator) and ``admin_client``
the operator; each keeps its own session cookie.
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from conftest import (
    API,
    DEMO_EMAIL,
    MIDDLE_ADMIN,
    NORMAL_ADMIN,
    SUPER_ADMIN,
    open_account,
    sign_in_admin,
    sign_up,
)

ADMIN = f"{API}/admin"


def _funded_client(client: TestClient, admin_client: TestClient, email: str, amount: str):
    """Sign up a client with one Live account credited with ``amount``."""
    user = sign_up(client, email)
    account = open_account(client, type="Live")
    response = admin_client.post(
        f"{ADMIN}/users/{user['id']}/add-funds",
        json={"account_id": account["id"], "amount": amount},
    )
    assert response.status_code == 200, response.text
    return user, account


def _balance(client: TestClient, account_id: str) -> Decimal:
    accounts = client.get(f"{API}/trading-accounts").json()
    return next(Decimal(a["balance"]) for a in accounts if a["id"] == account_id)


class TestAdminAuthentication:
    def test_sign_in_and_me(self, admin_client: TestClient) -> None:
        admin = sign_in_admin(admin_client, SUPER_ADMIN)
        assert admin["role"] == "super_admin"
        assert "password_hash" not in admin

        me = admin_client.get(f"{ADMIN}/auth/me").json()
        assert me["admin"]["username"] == "superadmin"
        assert me["countries"] is None
        assert me["impersonating"] is None

    def test_bad_password(self, admin_client: TestClient) -> None:
        response = admin_client.post(
            f"{ADMIN}/auth/signin", json={"username": "superadmin", "password": "wrong"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid username or password"

    def test_requires_admin_session(self, admin_client: TestClient) -> None:
        response = admin_client.get(f"{ADMIN}/users")
        assert response.status_code == 401
        assert response.json()["detail"] == "Admin authentication required"

    def test_client_session_is_not_an_admin_session(self, client: TestClient) -> None:
        sign_up(client, "sneaky@example.com")
        assert client.get(f"{ADMIN}/users").status_code == 401

    def test_logout(self, admin_client: TestClient) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        assert admin_client.post(f"{ADMIN}/auth/logout").status_code == 200
        assert admin_client.get(f"{ADMIN}/auth/me").status_code == 401


class TestRolesAndScope:
    def test_middle_admin_without_countries_sees_nobody(self, admin_client: TestClient) -> None:
        sign_in_admin(admin_client, MIDDLE_ADMIN)
        assert admin_client.get(f"{ADMIN}/users").json() == []
        assert admin_client.get(f"{ADMIN}/auth/me").json()["countries"] == []

    def test_hidden_client_is_not_found(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        user = sign_up(client, "hidden@example.com")
        sign_in_admin(admin_client, MIDDLE_ADMIN)
        response = admin_client.get(f"{ADMIN}/users/{user['id']}")
        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    def test_assigned_country_becomes_visible(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        middle = sign_in_admin(admin_client, MIDDLE_ADMIN)
        sign_in_admin(client, SUPER_ADMIN)
        response = client.post(
            f"{ADMIN}/admins/{middle['id']}/countries", json={"country": "United States"}
        )
        assert response.status_code == 200
        assert [a["country"] for a in response.json()] == ["United States"]

        emails = [u["email"] for u in admin_client.get(f"{ADMIN}/users").json()]
        assert emails == [DEMO_EMAIL]
        mine = admin_client.get(f"{ADMIN}/country-assignments/mine").json()
        assert [a["country"] for a in mine] == ["United States"]

        removed = client.delete(f"{ADMIN}/admins/{middle['id']}/countries/United%20States")
        assert removed.status_code == 200
        assert admin_client.get(f"{ADMIN}/users").json() == []

    def test_country_for_normal_admin_is_rejected(self, admin_client: TestClient) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        normal = next(
            a for a in admin_client.get(f"{ADMIN}/admins").json() if a["username"] == "normaladmin"
        )
        response = admin_client.post(
            f"{ADMIN}/admins/{normal['id']}/countries", json={"country": "France"}
        )
        assert response.status_code == 400

    def test_super_admin_only_routes(self, client: TestClient, admin_client: TestClient) -> None:
        user = sign_up(client, "victim@example.com")
        account = open_account(client)
        for credentials in (MIDDLE_ADMIN, NORMAL_ADMIN):
            sign_in_admin(admin_client, credentials)
            assert admin_client.get(f"{ADMIN}/admins").status_code == 403
            response = admin_client.post(
                f"{ADMIN}/users/{user['id']}/add-funds",
                json={"account_id": account["id"], "amount": "10"},
            )
            assert response.status_code == 403
            assert response.json()["error"] == "Forbidden"
            assert admin_client.post(f"{ADMIN}/users/{user['id']}/impersonate").status_code == 403

    def test_normal_admin_sees_every_client(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(client, "anyone@example.com")
        sign_in_admin(admin_client, NORMAL_ADMIN)
        assert len(admin_client.get(f"{ADMIN}/users").json()) == 2


class TestClientManagement:
    def test_toggle_user_blocks_sign_in(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        user = sign_up(client, "blocked@example.com")
        sign_in_admin(admin_client, SUPER_ADMIN)
        response = admin_client.patch(f"{ADMIN}/users/{user['id']}/toggle")
        assert response.json()["enabled"] is False

        signin = client.post(
            f"{API}/auth/signin", json={"email": "blocked@example.com", "password": "secret1"}
        )
        assert signin.status_code == 401

    def test_add_and_remove_funds(self, client: TestClient, admin_client: TestClient) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        user, account = _funded_client(client, admin_client, "funds@example.com", "150")
        assert _balance(client, account["id"]) == Decimal("150")

        deposits = client.get(f"{API}/deposits").json()
        assert [(d["merchant"], d["status"]) for d in deposits] == [("Admin Credit", "Completed")]

        response = admin_client.post(
            f"{ADMIN}/users/{user['id']}/remove-funds",
            json={"account_id": account["id"], "amount": "50", "reason": "correction"},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["balance"]) == Decimal("100")

    def test_remove_more_than_balance(self, client: TestClient, admin_client: TestClient) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        user, account = _funded_client(client, admin_client, "short@example.com", "10")
        response = admin_client.post(
            f"{ADMIN}/users/{user['id']}/remove-funds",
            json={"account_id": account["id"], "amount": "10.01"},
        )
        assert response.status_code == 400
        assert _balance(client, account["id"]) == Decimal("10")

    def test_oversized_adjustment_is_rejected(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        user = sign_up(client, "bigfunds@example.com")
        account = open_account(client)
        sign_in_admin(admin_client, SUPER_ADMIN)
        response = admin_client.post(
            f"{ADMIN}/users/{user['id']}/add-funds",
            json={"account_id": account["id"], "amount": "1e30"},
        )
        assert response.status_code == 422
        assert _balance(client, account["id"]) == Decimal("0")

    def test_funds_on_someone_elses_account(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(client, "owner2@example.com")
        account = open_account(client)
        sign_in_admin(admin_client, SUPER_ADMIN)
        other = sign_up(admin_client, "other2@example.com")
        response = admin_client.post(
            f"{ADMIN}/users/{other['id']}/add-funds",
            json={"account_id": account["id"], "amount": "10"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == (
            f"Account {account['id']} does not belong to user {other['id']}"
        )
        assert _balance(client, account["id"]) == Decimal("0")

    def test_impersonation_round_trip(self, client: TestClient, admin_client: TestClient) -> None:
        user = sign_up(client, "target@example.com")
        sign_in_admin(admin_client, SUPER_ADMIN)

        assert admin_client.post(f"{ADMIN}/stop-impersonation").status_code == 400

        response = admin_client.post(f"{ADMIN}/users/{user['id']}/impersonate")
        assert response.status_code == 200
        assert admin_client.get(f"{API}/auth/me").json()["email"] == "target@example.com"
        assert admin_client.get(f"{ADMIN}/auth/me").json()["impersonating"] == user["id"]

        assert admin_client.post(f"{ADMIN}/stop-impersonation").status_code == 200
        assert admin_client.get(f"{API}/auth/me").status_code == 401
        assert admin_client.get(f"{ADMIN}/auth/me").status_code == 200

    def test_toggle_trading_account(self, client: TestClient, admin_client: TestClient) -> None:
        sign_up(client, "acct@example.com")
        account = open_account(client)
        sign_in_admin(admin_client, NORMAL_ADMIN)
        response = admin_client.patch(f"{ADMIN}/trading-accounts/{account['id']}/toggle")
        assert response.status_code == 200
        assert response.json()["enabled"] is False

        deposit = client.post(
            f"{API}/deposits",
            json={"account_id": account["id"], "amount": "50", "merchant": "Card"},
        )
        assert deposit.status_code == 400
        stats = admin_client.get(f"{ADMIN}/trading-accounts/stats").json()
        assert stats["disabled"] == 1


class TestPayments:
    def test_deposit_approval_credits_once(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(client, "payer@example.com")
        account = open_account(client, type="Live")
        deposit = client.post(
            f"{API}/deposits",
            json={"account_id": account["id"], "amount": "75", "merchant": "Card"},
        ).json()

        sign_in_admin(admin_client, NORMAL_ADMIN)
        first = admin_client.post(f"{ADMIN}/deposits/{deposit['id']}/approve")
        assert first.status_code == 200
        assert first.json()["status"] == "Completed"
        second = admin_client.post(f"{ADMIN}/deposits/{deposit['id']}/approve")
        assert second.status_code == 400
        assert _balance(client, account["id"]) == Decimal("75")

    def test_deposit_rejection(self, client: TestClient, admin_client: TestClient) -> None:
        sign_up(client, "rejected@example.com")
        account = open_account(client)
        deposit = client.post(
            f"{API}/deposits",
            json={"account_id": account["id"], "amount": "20", "merchant": "Crypto"},
        ).json()
        sign_in_admin(admin_client, SUPER_ADMIN)
        response = admin_client.post(
            f"{ADMIN}/deposits/{deposit['id']}/reject", json={"reason": "Unverified source"}
        )
        assert response.json()["status"] == "Rejected"
        assert _balance(client, account["id"]) == Decimal("0")

    def test_withdrawal_approval_and_rejection(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        _, account = _funded_client(client, admin_client, "cashout@example.com", "100")
        payload = {"account_id": account["id"], "amount": "60", "method": "Bank"}
        first = client.post(f"{API}/withdrawals", json=payload).json()
        second = client.post(f"{API}/withdrawals", json=payload).json()

        approved = admin_client.post(f"{ADMIN}/withdrawals/{first['id']}/approve")
        assert approved.json()["status"] == "Completed"
        assert _balance(client, account["id"]) == Decimal("40")

        uncovered = admin_client.post(f"{ADMIN}/withdrawals/{second['id']}/approve")
        assert uncovered.status_code == 400

        no_reason = admin_client.post(f"{ADMIN}/withdrawals/{second['id']}/reject", json={})
        assert no_reason.status_code == 400
        rejected = admin_client.post(
            f"{ADMIN}/withdrawals/{second['id']}/reject", json={"reason": "Insufficient funds"}
        )
        assert rejected.json()["status"] == "Rejected"
        assert rejected.json()["rejection_reason"] == "Insufficient funds"

    def test_external_transfer_approval(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        sign_up(admin_client, "payee@example.com")
        destination = open_account(admin_client)
        _, source = _funded_client(client, admin_client, "payer2@example.com", "200")
        transfer = client.post(
            f"{API}/fund-transfers/external",
            json={
                "from_account_id": source["id"],
                "to_account_number": destination["account_number"],
                "amount": "100",
            },
        ).json()

        response = admin_client.post(f"{ADMIN}/fund-transfers/{transfer['id']}/approve")
        assert response.status_code == 200
        assert response.json()["status"] == "Completed"
        assert _balance(client, source["id"]) == Decimal("97.50")
        assert _balance(admin_client, destination["id"]) == Decimal("100")

        stats = admin_client.get(f"{ADMIN}/fund-transfers/stats").json()
        assert (stats["external"], stats["completed"]) == (1, 1)

    def test_transfer_rejection_marks_failed(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        sign_up(admin_client, "payee3@example.com")
        destination = open_account(admin_client)
        _, source = _funded_client(client, admin_client, "payer3@example.com", "50")
        transfer = client.post(
            f"{API}/fund-transfers/external",
            json={
                "from_account_id": source["id"],
                "to_account_number": destination["account_number"],
                "amount": "10",
            },
        ).json()
        response = admin_client.post(
            f"{ADMIN}/fund-transfers/{transfer['id']}/reject", json={"reason": "Suspicious"}
        )
        assert response.json()["status"] == "Failed"
        assert _balance(client, source["id"]) == Decimal("50")

    def test_csv_exports(self, client: TestClient, admin_client: TestClient) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        _funded_client(client, admin_client, "csv@example.com", "30")

        deposits = admin_client.get(f"{ADMIN}/deposits/export")
        assert deposits.status_code == 200
        assert deposits.headers["content-type"].startswith("text/csv")
        assert "attachment" in deposits.headers["content-disposition"]
        lines = deposits.text.splitlines()
        assert lines[0].startswith("id,transaction_id,user_id")
        assert len(lines) == 2

        withdrawals = admin_client.get(f"{ADMIN}/withdrawals/export")
        assert withdrawals.text.splitlines()[0].startswith("id,user_id,account_id,method")


class TestDocumentsReferralsTickets:
    def _upload(self, client: TestClient, doc_type: str) -> dict:
        response = client.post(
            f"{API}/documents",
            json={"type": doc_type, "file_name": "doc.pdf", "file_url": "https://files/doc.pdf"},
        )
        assert response.status_code == 201
        return response.json()

    def test_both_kyc_documents_verify_client(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(client, "kyc2@example.com")
        id_proof = self._upload(client, "ID Proof")
        address_proof = self._upload(client, "Address Proof")
        sign_in_admin(admin_client, NORMAL_ADMIN)

        admin_client.post(f"{ADMIN}/documents/{id_proof['id']}/approve")
        assert client.get(f"{API}/auth/me").json()["verified"] is False

        response = admin_client.patch(
            f"{ADMIN}/documents/{address_proof['id']}/verify", json={"status": "Verified"}
        )
        assert response.json()["status"] == "Verified"
        assert client.get(f"{API}/auth/me").json()["verified"] is True

    def test_document_rejection_needs_reason(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(client, "kyc3@example.com")
        document = self._upload(client, "ID Proof")
        sign_in_admin(admin_client, SUPER_ADMIN)
        assert admin_client.post(
            f"{ADMIN}/documents/{document['id']}/reject", json={}
        ).status_code == 400
        response = admin_client.post(
            f"{ADMIN}/documents/{document['id']}/reject", json={"reason": "Blurry"}
        )
        assert response.json()["rejection_reason"] == "Blurry"

    def test_referral_acceptance_and_commission(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        broker = sign_up(client, "broker@example.com")
        sign_in_admin(admin_client, SUPER_ADMIN)
        referred = sign_up(admin_client, "lead@example.com", referral_code=broker["referral_id"])
        account = open_account(admin_client)

        referrals = admin_client.get(f"{ADMIN}/referrals").json()
        assert [(r["user_id"], r["referrer_id"]) for r in referrals] == [
            (referred["id"], broker["id"])
        ]
        accepted = admin_client.post(f"{ADMIN}/referrals/{referred['id']}/accept")
        assert accepted.json()["referral_status"] == "Accepted"
        assert admin_client.post(f"{ADMIN}/referrals/{referred['id']}/accept").status_code == 400
        wallets = admin_client.get(f"{ADMIN}/wallets").json()
        assert [(w["user_id"], w["wallet_type"]) for w in wallets] == [(broker["id"], "IB")]

        deposit = admin_client.post(
            f"{API}/deposits",
            json={"account_id": account["id"], "amount": "200", "merchant": "Card"},
        ).json()
        admin_client.post(f"{ADMIN}/deposits/{deposit['id']}/approve")

        stats = client.get(f"{API}/ib/stats").json()
        assert stats["active_referrals"] == 1
        assert Decimal(stats["wallet"]["total_commission"]) == Decimal("10.00")
        assert Decimal(stats["total_commission"]) == Decimal("10.00")

    def test_ticket_reply_and_status(self, client: TestClient, admin_client: TestClient) -> None:
        sign_up(client, "support@example.com")
        ticket = client.post(
            f"{API}/support-tickets",
            json={"subject": "Payout", "message": "Where is it?", "category": "Payment"},
        ).json()
        sign_in_admin(admin_client, MIDDLE_ADMIN)

        reply = admin_client.post(
            f"{ADMIN}/support-tickets/{ticket['id']}/reply", json={"message": "Checking"}
        )
        assert reply.status_code == 201
        detail = admin_client.get(f"{ADMIN}/support-tickets/{ticket['id']}").json()
        assert detail["ticket"]["status"] == "In Progress"

        closed = admin_client.patch(
            f"{ADMIN}/support-tickets/{ticket['id']}/status", json={"status": "Closed"}
        )
        assert closed.json()["resolved_at"] is not None
        late = client.post(
            f"{API}/support-tickets/{ticket['id']}/reply", json={"message": "Thanks"}
        )
        assert late.status_code == 400


class TestAdministration:
    def test_create_admin_and_duplicate(self, admin_client: TestClient) -> None:
        sign_in_admin(admin_client, SUPER_ADMIN)
        payload = {
            "username": "ops",
            "email": "ops@example.com",
            "password": "secret1",
            "full_name": "Ops",
            "role": "normal_admin",
        }
        created = admin_client.post(f"{ADMIN}/admins", json=payload)
        assert created.status_code == 201
        assert created.json()["created_by"] is not None

        duplicate = admin_client.post(f"{ADMIN}/admins", json=payload)
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "Admin username already exists"

    def test_disabled_admin_loses_session(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        normal = sign_in_admin(client, NORMAL_ADMIN)
        sign_in_admin(admin_client, SUPER_ADMIN)
        response = admin_client.patch(f"{ADMIN}/admins/{normal['id']}", json={"enabled": False})
        assert response.json()["enabled"] is False
        assert client.get(f"{ADMIN}/users").status_code == 401

    def test_stats_and_activity_logs(self, client: TestClient, admin_client: TestClient) -> None:
        sign_in_admin(client, NORMAL_ADMIN)
        sign_in_admin(admin_client, SUPER_ADMIN)

        stats = admin_client.get(f"{ADMIN}/stats").json()
        assert stats["users_total"] == 1
        assert stats["users_verified"] == 1

        every = admin_client.get(f"{ADMIN}/activity-logs").json()
        assert {e["action"] for e in every} == {"signin"}
        assert len(every) == 2
        own = client.get(f"{ADMIN}/activity-logs").json()
        assert len(own) == 1
