from datetime import date

from masjid_portal.config import settings


def _add(client, headers, amount, fund, day=1):
    response = client.post(
        "/api/v1/transactions/",
        json={
            "amount": amount,
            "purpose": f"Don {fund}",
            "fund": fund,
            "transaction_date": date(2024, 1, day).isoformat(),
        },
        headers=headers,
    )
    assert response.status_code == 201


def test_empty_dashboard(client):
    body = client.get("/api/v1/dashboard/").json()

    assert body["mosque_name"] == settings.MOSQUE_NAME
    assert body["stats"]["total_balance"] == 0
    assert body["recent_transactions"] == []
    assert body["committee_members"] == []


def test_dashboard_balances_and_recent_transactions(client, cashier_headers, make_member):
    for day in range(1, 7):
        _add(client, cashier_headers, 10, "mosque", day)
    _add(client, cashier_headers, 25, "imam", 7)
    make_member(name="Ibrahim")

    body = client.get("/api/v1/dashboard/").json()

    stats = body["stats"]
    assert stats["mosque_balance"] == 60
    assert stats["imam_balance"] == 25
    assert stats["total_balance"] == stats["mosque_balance"] + stats["imam_balance"]
    assert stats["total_transactions"] == 7
    assert len(body["recent_transactions"]) == 5
    assert body["recent_transactions"][0]["fund"] == "imam"
    assert [m["name"] for m in body["committee_members"]] == ["Ibrahim"]


def test_stats_endpoint(client, cashier_headers):
    _add(client, cashier_headers, 100, "mosque")

    stats = client.get("/api/v1/dashboard/stats").json()

    assert stats["mosque_income"] == 100
    assert stats["mosque_expense"] == 0


def test_health_and_root(client):
    health = client.get("/health").json()
    assert health["database"] == "ok"

    root = client.get("/").json()
    assert root["api"] == "/api/v1"
