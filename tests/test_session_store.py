from datetime import timedelta

import pytest
from fastapi import Response
from jose import jwt
from starlette.requests import Request

from masjid_portal.config import settings
from masjid_portal.core.security import create_session_token, decode_session_token
from masjid_portal.core import session_store
from masjid_portal.core.session_store import SESSION_KEYS, SessionStore


def _request(cookies=None, authorization=None):
    headers = []
    if cookies:
        cookie = "; ".join(f"{k}={v}" for k, v in cookies.items())
        headers.append((b"cookie", cookie.encode()))
    if authorization:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _filled_store():
    store = SessionStore()
    store.set("user_id", "7")
    store.set("user_role", "cashier")
    store.set("user_name", "Omar")
    return store


def test_set_rejects_unknown_key():
    store = SessionStore()
    with pytest.raises(KeyError):
        store.set("is_admin", "true")


def test_clear_removes_all_keys_even_when_empty():
    store = _filled_store()
    store.clear()
    assert store.is_empty
    assert all(store.get(key) is None for key in SESSION_KEYS)

    empty = SessionStore()
    empty.clear()
    assert empty.is_empty


def test_token_round_trip_keeps_session_values():
    store = _filled_store()

    restored = SessionStore.from_token(store.to_token())

    assert restored.as_dict() == {"user_id": "7", "user_role": "cashier", "user_name": "Omar"}


def test_tampered_or_foreign_token_gives_empty_session():
    token = _filled_store().to_token()

    assert SessionStore.from_token(token[:-3] + "abc").is_empty
    assert SessionStore.from_token("pas-un-jeton").is_empty
    assert SessionStore.from_token(None).is_empty


def test_token_of_other_type_is_rejected():
    token = create_session_token({"user_id": "7"})
    payload = decode_session_token(token)
    assert payload["type"] == "session"

    other = jwt.encode({"user_id": "7", "type": "reset"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert decode_session_token(other) is None


def test_session_token_has_no_expiry_by_default():
    payload = decode_session_token(create_session_token({"user_id": "7"}))
    assert "exp" not in payload


def test_expired_token_is_rejected():
    token = create_session_token({"user_id": "7"}, expires_delta=timedelta(seconds=-5))
    assert decode_session_token(token) is None


def test_from_request_prefers_cookie_over_bearer():
    cookie_token = _filled_store().to_token()
    other = SessionStore({"user_id": "9", "user_role": "admin", "user_name": "Fatima"})

    store = SessionStore.from_request(
        _request(
            cookies={settings.SESSION_COOKIE_NAME: cookie_token},
            authorization=f"Bearer {other.to_token()}",
        )
    )

    assert store.get("user_id") == "7"


def test_from_request_reads_bearer_header():
    token = _filled_store().to_token()

    store = SessionStore.from_request(_request(authorization=f"Bearer {token}"))

    assert store.get("user_name") == "Omar"


def test_save_sets_httponly_cookie():
    response = Response()
    _filled_store().save(response)

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "httponly" in cookie.lower()
    assert "samesite=lax" in cookie.lower()


def test_save_of_empty_store_deletes_cookie():
    response = Response()
    SessionStore().save(response)

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f'{settings.SESSION_COOKIE_NAME}=""') or "max-age=0" in cookie.lower()


def test_for_request_decodes_token_once_per_request(monkeypatch):
    calls = []

    def _counting_decode(token):
        calls.append(token)
        return decode_session_token(token)

    monkeypatch.setattr(session_store, "decode_session_token", _counting_decode)
    request = _request(authorization=f"Bearer {_filled_store().to_token()}")

    first = SessionStore.for_request(request)
    second = SessionStore.for_request(request)

    assert first is second
    assert first.get("user_id") == "7"
    assert len(calls) == 1


def test_guarded_request_decodes_session_once(client, monkeypatch):
    calls = []

    def _counting_decode(token):
        calls.append(token)
        return decode_session_token(token)

    monkeypatch.setattr(session_store, "decode_session_token", _counting_decode)

    response = client.post(
        "/api/v1/committee/reconcile",
        headers={"Authorization": "Bearer jeton-invalide"},
    )

    assert response.status_code == 401
    assert calls == ["jeton-invalide"]
