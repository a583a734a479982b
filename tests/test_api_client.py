"""
API tests for the client portal endpoints.

Every test starts from a freshly seeded database: the demo client and
the three default admins exist, nothing else does.
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from conftest import API, DEMO_EMAIL, DEMO_PASSWORD, SUPER_ADMIN, open_account, sign_in_admin, sign_up


def _fund(admin_client: TestClient, user_id: str, account_id: str, amount: str) -> None:
    """Credit an account through the back office."""
    sign_in_admin(admin_client, SUPER_ADMIN)
    response = admin_client.post(
        f"{API}/admin/users/{user_id}/add-funds",
        json={"account_id": account_id, "amount": amount, "reason": "test funding"},
    )
    assert response.status_code == 200, response.text


class TestAuthentication:
    """Tests for client sign-up, sign-in and session handling."""

    def test_sign_up_starts_session(self, client: TestClient) -> None:
        user = sign_up(client, "New.Client@Example.com", full_name="New Client")
        assert user["email"] == "new.client@example.com"
        assert user["referral_status"] == "Pending"
        assert len(user["referral_id"]) == 8
        assert "password_hash" not in user

        me = client.get(f"{API}/auth/me")
        assert me.status_code == 200
        assert me.json()["id"] == user["id"]

    def test_duplicate_email(self, client: TestClient) -> None:
        response = client.post(
            f"{API}/auth/signup", json={"email": DEMO_EMAIL, "password": "secret1"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "Email already registered"

    def test_short_password(self, client: TestClient) -> None:
        response = client.post(
            f"{API}/auth/signup", json={"email": "a@b.io", "password": "12345"}
        )
        assert response.status_code == 400

    def test_malformed_email_is_rejected(self, client: TestClient) -> None:
        response = client.post(
            f"{API}/auth/signup", json={"email": "not-an-email", "password": "secret1"}
        )
        assert response.status_code == 422

    def test_sign_in_demo_client(self, client: TestClient) -> None:
        response = client.post(
            f"{API}/auth/signin", json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["verified"] is True

    def test_wrong_password(self, client: TestClient) -> None:
        response = client.post(
            f"{API}/auth/signin", json={"email": DEMO_EMAIL, "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_logout_ends_session(self, client: TestClient) -> None:
        sign_up(client, "bye@example.com")
        assert client.post(f"{API}/auth/logout").status_code == 200
        assert client.get(f"{API}/auth/me").status_code == 401


class TestProfile:
    def test_update_contact_details(self, client: TestClient) -> None:
        sign_up(client, "profile@example.com")
        response = client.patch(
            f"{API}/profile", json={"city": "Lyon", "country": "France"}
        )
        assert response.status_code == 200
        body = response.json()
        assert (body["city"], body["country"]) == ("Lyon", "France")

    def test_email_cannot_be_changed(self, client: TestClient) -> None:
        sign_up(client, "fixed@example.com")
        response = client.patch(f"{API}/profile", json={"email": "other@example.com"})
        assert response.status_code == 200
        assert response.json()["email"] == "fixed@example.com"


class TestTradingAccounts:
    def test_open_account_returns_password_once(self, client: TestClient) -> None:
        sign_up(client, "trader@example.com")
        account = open_account(client, type="Live", group="Pro", leverage="1:500")
        assert len(account["account_number"]) == 8
        assert account["account_number"].isdigit()
        assert len(account["password"]) == 8
        assert Decimal(account["balance"]) == Decimal("0")

        listed = client.get(f"{API}/trading-accounts").json()
        assert [a["id"] for a in listed] == [account["id"]]
        assert "password" not in listed[0]

    def test_unknown_leverage(self, client: TestClient) -> None:
        sign_up(client, "lev@example.com")
        response = client.post(f"{API}/trading-accounts", json={"leverage": "1:3000"})
        assert response.status_code == 400

    def test_change_leverage(self, client: TestClient) -> None:
        sign_up(client, "lev2@example.com")
        account = open_account(client)
        response = client.patch(
            f"{API}/trading-accounts/{account['id']}", json={"leverage": "1:200"}
        )
        assert response.status_code == 200
        assert response.json()["leverage"] == "1:200"

    def test_cannot_touch_another_clients_account(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(admin_client, "owner@example.com")
        foreign = open_account(admin_client)
        sign_up(client, "intruder@example.com")

        patch = client.patch(
            f"{API}/trading-accounts/{foreign['id']}", json={"leverage": "1:50"}
        )
        assert patch.status_code == 404
        history = client.get(f"{API}/trading-history", params={"account_id": foreign["id"]})
        assert history.status_code == 404

    def test_empty_history_and_dashboard(self, client: TestClient) -> None:
        sign_up(client, "fresh@example.com")
        open_account(client)
        assert client.get(f"{API}/trading-history").json() == []
        stats = client.get(f"{API}/dashboard/stats").json()
        assert stats["total_accounts"] == 1
        assert stats["open_trades"] == 0
        assert Decimal(stats["balance"]) == Decimal("0")


class TestFunding:
    def test_deposit_request_is_pending(self, client: TestClient) -> None:
        sign_up(client, "dep@example.com")
        account = open_account(client, type="Live")
        response = client.post(
            f"{API}/deposits",
            json={"account_id": account["id"], "amount": "50.00", "merchant": "Card"},
        )
        assert response.status_code == 201
        deposit = response.json()
        assert deposit["status"] == "Pending"
        assert deposit["transaction_id"].startswith("TXN")

        balance = client.get(f"{API}/trading-accounts").json()[0]["balance"]
        assert Decimal(balance) == Decimal("0")
        titles = [n["title"] for n in client.get(f"{API}/notifications").json()]
        assert "Deposit Initiated" in titles

    def test_deposit_below_minimum(self, client: TestClient) -> None:
        sign_up(client, "small@example.com")
        account = open_account(client)
        response = client.post(
            f"{API}/deposits",
            json={"account_id": account["id"], "amount": "9.99", "merchant": "Card"},
        )
        assert response.status_code == 400

    def test_oversized_deposit_is_rejected(self, client: TestClient) -> None:
        sign_up(client, "huge@example.com")
        account = open_account(client)
        response = client.post(
            f"{API}/deposits",
            json={"account_id": account["id"], "amount": "1e30", "merchant": "Card"},
        )
        assert response.status_code == 422
        assert client.get(f"{API}/deposits").json() == []

    def test_oversized_withdrawal_is_rejected(self, client: TestClient) -> None:
        sign_up(client, "huge-wd@example.com")
        account = open_account(client)
        response = client.post(
            f"{API}/withdrawals",
            json={"account_id": account["id"], "amount": 1e30, "method": "Bank"},
        )
        assert response.status_code == 422
        assert client.get(f"{API}/withdrawals").json() == []

    def test_withdrawal_over_balance(self, client: TestClient) -> None:
        sign_up(client, "wd@example.com")
        account = open_account(client)
        response = client.post(
            f"{API}/withdrawals",
            json={"account_id": account["id"], "amount": "1.00", "method": "Bank"},
        )
        assert response.status_code == 400
        assert "Insufficient balance" in response.json()["error"]

    def test_withdrawal_request(self, client: TestClient, admin_client: TestClient) -> None:
        user = sign_up(client, "wd2@example.com")
        account = open_account(client)
        _fund(admin_client, user["id"], account["id"], "100")
        response = client.post(
            f"{API}/withdrawals",
            json={
                "account_id": account["id"],
                "amount": "40",
                "method": "Bank",
                "bank_name": "First Bank",
            },
        )
        assert response.status_code == 201
        assert response.json()["status"] == "Pending"
        assert len(client.get(f"{API}/withdrawals").json()) == 1


class TestTransfers:
    def test_internal_transfer_is_immediate(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        user = sign_up(client, "mover@example.com")
        source = open_account(client)
        target = open_account(client)
        _fund(admin_client, user["id"], source["id"], "100")

        response = client.post(
            f"{API}/fund-transfers/internal",
            json={"from_account_id": source["id"], "to_account_id": target["id"], "amount": "30"},
        )
        assert response.status_code == 201
        assert response.json()["status"] == "Completed"
        balances = {a["id"]: Decimal(a["balance"]) for a in client.get(f"{API}/trading-accounts").json()}
        assert balances == {source["id"]: Decimal("70"), target["id"]: Decimal("30")}

    def test_internal_transfer_to_same_account(self, client: TestClient) -> None:
        sign_up(client, "same@example.com")
        account = open_account(client)
        response = client.post(
            f"{API}/fund-transfers/internal",
            json={"from_account_id": account["id"], "to_account_id": account["id"], "amount": "1"},
        )
        assert response.status_code == 400

    def test_external_transfer_waits_for_approval(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(admin_client, "receiver@example.com")
        destination = open_account(admin_client)
        sender = sign_up(client, "sender@example.com")
        source = open_account(client)
        _fund(admin_client, sender["id"], source["id"], "200")

        response = client.post(
            f"{API}/fund-transfers/external",
            json={
                "from_account_id": source["id"],
                "to_account_number": destination["account_number"],
                "amount": "100",
            },
        )
        assert response.status_code == 201
        transfer = response.json()
        assert transfer["status"] == "Pending"
        assert transfer["transfer_type"] == "external"
        assert Decimal(transfer["fee"]) == Decimal("2.50")
        balance = client.get(f"{API}/trading-accounts").json()[0]["balance"]
        assert Decimal(balance) == Decimal("200")

    def test_external_transfer_to_unknown_account(self, client: TestClient) -> None:
        sign_up(client, "lost@example.com")
        source = open_account(client)
        response = client.post(
            f"{API}/fund-transfers/external",
            json={"from_account_id": source["id"], "to_account_number": "12345678", "amount": "1"},
        )
        assert response.status_code == 404


class TestDocumentsAndNotifications:
    def test_upload_and_verification_status(self, client: TestClient) -> None:
        sign_up(client, "kyc@example.com")
        response = client.post(
            f"{API}/documents",
            json={"type": "ID Proof", "file_name": "passport.pdf", "file_url": "https://files/p.pdf"},
        )
        assert response.status_code == 201
        assert response.json()["status"] == "Pending"

        status = client.get(f"{API}/documents/verification-status").json()
        assert status["is_verified"] is False
        assert status["has_pending"] is True
        assert status["required_count"] == 2

    def test_mark_notification_read(self, client: TestClient) -> None:
        sign_up(client, "reader@example.com")
        client.post(
            f"{API}/documents",
            json={"type": "Other", "file_name": "x.pdf", "file_url": "https://files/x.pdf"},
        )
        notification = client.get(f"{API}/notifications").json()[0]
        assert notification["read"] is False

        response = client.patch(f"{API}/notifications/{notification['id']}/read")
        assert response.status_code == 200
        assert client.get(f"{API}/notifications").json()[0]["read"] is True

    def test_unknown_notification(self, client: TestClient) -> None:
        sign_up(client, "ghost@example.com")
        assert client.patch(f"{API}/notifications/nope/read").status_code == 404


class TestSupportTickets:
    def test_ticket_conversation(self, client: TestClient) -> None:
        sign_up(client, "help@example.com")
        ticket = client.post(
            f"{API}/support-tickets",
            json={"subject": "Login", "message": "Cannot log in", "category": "Technical"},
        ).json()
        assert ticket["status"] == "Open"
        assert ticket["priority"] == "Medium"

        reply = client.post(
            f"{API}/support-tickets/{ticket['id']}/reply", json={"message": "Any news?"}
        )
        assert reply.status_code == 201

        detail = client.get(f"{API}/support-tickets/{ticket['id']}").json()
        assert detail["ticket"]["id"] == ticket["id"]
        assert [r["message"] for r in detail["replies"]] == ["Any news?"]

    def test_other_clients_ticket_is_hidden(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        sign_up(admin_client, "first@example.com")
        ticket = admin_client.post(
            f"{API}/support-tickets",
            json={"subject": "Mine", "message": "Private", "category": "Other"},
        ).json()
        sign_up(client, "second@example.com")
        assert client.get(f"{API}/support-tickets/{ticket['id']}").status_code == 404


class TestIntroducingBroker:
    def test_referral_shows_in_ib_stats(
        self, client: TestClient, admin_client: TestClient
    ) -> None:
        broker = sign_up(client, "ib@example.com")
        referred = sign_up(
            admin_client, "friend@example.com", referral_code=broker["referral_id"].lower()
        )
        assert referred["referred_by"] == broker["id"]

        stats = client.get(f"{API}/ib/stats").json()
        assert stats["referral_id"] == broker["referral_id"]
        assert stats["total_referrals"] == 1
        assert stats["active_referrals"] == 0
        assert stats["wallet"] is None
        assert stats["referrals"][0]["email"] == "friend@example.com"

    def test_unknown_referral_code(self, client: TestClient) -> None:
        response = client.post(
            f"{API}/auth/signup",
            json={"email": "lonely@example.com", "password": "secret1", "referral_code": "ZZZZZZZZ"},
        )
        assert response.status_code == 400
