from datetime import date
from decimal import Decimal

import pytest

from masjid_portal.core.exceptions import NotAuthenticated, NotFound
from masjid_portal.models import Fund, Transaction
from masjid_portal.schemas.transaction import TransactionCreate, TransactionUpdate
from masjid_portal.services import record_service
from masjid_portal.services.auth_service import AuthSession


DONATION = {"amount": 100, "purpose": "Donation", "fund": "mosque", "transaction_date": "2024-01-01"}


def _cashier(user):
    return AuthSession(user_id=str(user.id), role="cashier", name=user.name)


def test_add_transaction_records_cashier_and_raises_fund_balance(db, make_user):
    user = make_user(name="Omar", role="cashier", pin="5678")
    before = record_service.get_fund_balance(db, Fund.MOSQUE)

    transaction = record_service.add_transaction(db, _cashier(user), TransactionCreate(**DONATION))

    assert transaction.created_by == user.id
    assert transaction.created_by_name == "Omar"
    assert record_service.get_fund_balance(db, Fund.MOSQUE) == before + Decimal("100")
    assert record_service.get_fund_balance(db, Fund.IMAM) == Decimal("0")


def test_add_transaction_requires_session(db):
    with pytest.raises(NotAuthenticated):
        record_service.add_transaction(db, None, TransactionCreate(**DONATION))


@pytest.mark.parametrize(
    "changes",
    [{"amount": 0}, {"amount": -5}, {"purpose": "   "}, {"fund": "school"}],
)
def test_transaction_validation(changes):
    with pytest.raises(ValueError):
        TransactionCreate(**{**DONATION, **changes})


def test_dashboard_totals_match_transactions(db, make_user):
    user = make_user(role="cashier", pin="5678")
    session = _cashier(user)
    for amount, fund in [("100", "mosque"), ("20.50", "mosque"), ("40", "imam")]:
        record_service.add_transaction(
            db,
            session,
            TransactionCreate(amount=amount, purpose="Sadaqa", fund=fund, transaction_date=date(2024, 1, 2)),
        )

    stats = record_service.get_dashboard_stats(db)

    assert stats.mosque_balance == pytest.approx(120.50)
    assert stats.imam_balance == pytest.approx(40)
    assert stats.total_balance == pytest.approx(stats.mosque_balance + stats.imam_balance)
    assert stats.mosque_expense == 0
    assert stats.imam_expense == 0
    assert stats.total_transactions == 3


def test_recent_transactions_newest_first(db, make_user):
    user = make_user(role="cashier", pin="5678")
    session = _cashier(user)
    for day in (3, 1, 2):
        record_service.add_transaction(
            db,
            session,
            TransactionCreate(amount=10, purpose=f"Jour {day}", transaction_date=date(2024, 1, day)),
        )

    recent = record_service.list_recent_transactions(db, limit=2)

    assert [t.purpose for t in recent] == ["Jour 3", "Jour 2"]


def test_update_and_delete_transaction(db, make_user):
    user = make_user(role="cashier", pin="5678")
    session = _cashier(user)
    transaction = record_service.add_transaction(db, session, TransactionCreate(**DONATION))

    updated = record_service.update_transaction(
        db, session, transaction.id, TransactionUpdate(amount=Decimal("75.25"), fund="imam")
    )
    assert updated.amount == Decimal("75.25")
    assert updated.fund == "imam"
    assert updated.purpose == "Donation"

    record_service.delete_transaction(db, session, transaction.id)
    with pytest.raises(NotFound):
        record_service.get_transaction(db, transaction.id)


def test_created_by_name_falls_back_to_unknown(db):
    transaction = Transaction(amount=5, purpose="Anonyme", fund="imam", transaction_date=date(2024, 1, 1))
    db.add(transaction)
    db.commit()

    assert transaction.created_by_name == "Unknown"


def test_public_list_is_readable_without_session(client, cashier_headers):
    client.post("/api/v1/transactions/", json=DONATION, headers=cashier_headers)

    response = client.get("/api/v1/transactions/")

    assert response.status_code == 200
    assert [t["purpose"] for t in response.json()] == ["Donation"]
    assert response.json()[0]["created_by_name"] == "Caissier Omar"


def test_create_transaction_endpoint(client, cashier_headers):
    response = client.post("/api/v1/transactions/", json=DONATION, headers=cashier_headers)

    assert response.status_code == 201
    body = response.json()
    assert Decimal(body["amount"]) == Decimal("100")
    assert body["fund"] == "mosque"
    assert body["transaction_date"] == "2024-01-01"


def test_create_transaction_without_session_redirects_to_login(client):
    response = client.post("/api/v1/transactions/", json=DONATION)

    assert response.status_code == 401
    assert response.json()["redirect_to"] == "/login"
    assert response.headers["location"] == "/login"


def test_admin_cannot_add_transaction(client, admin_headers):
    response = client.post("/api/v1/transactions/", json=DONATION, headers=admin_headers)

    assert response.status_code == 403
    assert response.json()["redirect_to"] == "/"


def test_invalid_amount_is_rejected(client, cashier_headers):
    response = client.post(
        "/api/v1/transactions/", json={**DONATION, "amount": 0}, headers=cashier_headers
    )

    assert response.status_code == 422
    assert client.get("/api/v1/transactions/").json() == []


def test_update_and_delete_endpoints(client, cashier_headers):
    created = client.post("/api/v1/transactions/", json=DONATION, headers=cashier_headers).json()

    updated = client.put(
        f"/api/v1/transactions/{created['id']}",
        json={"purpose": "Zakat"},
        headers=cashier_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["purpose"] == "Zakat"

    deleted = client.delete(f"/api/v1/transactions/{created['id']}", headers=cashier_headers)
    assert deleted.status_code == 204
    assert client.get(f"/api/v1/transactions/{created['id']}").status_code == 404


def test_list_limit_is_bounded(client):
    assert client.get("/api/v1/transactions/?limit=0").status_code == 422
    assert client.get("/api/v1/transactions/?limit=1001").status_code == 422
