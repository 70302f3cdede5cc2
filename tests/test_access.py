import logging

import pytest

from conftest import bearer, forge_token
from shop.auth import AccessSignals, admin_decision, grants_admin

SIGNALS = [
    AccessSignals(is_admin=True),
    AccessSignals(role="admin"),
    AccessSignals(full_access="ALL_PERMISSIONS"),
    AccessSignals(override_header="true"),
    AccessSignals(username="admin"),
]


@pytest.mark.parametrize("signals", SIGNALS)
def test_any_single_signal_grants_admin(signals):
    assert grants_admin(signals) is True


def test_no_signal_denies():
    assert not grants_admin(AccessSignals(username="bob", role="user", full_access="LIMITED", override_header="false"))


def test_signals_read_from_claims_and_headers():
    signals = AccessSignals.from_request(
        {"isAdmin": False, "role": "user", "fullAccess": "LIMITED", "username": "bob"},
        {"x-admin-override": "true"},
    )
    assert signals.override_header == "true"
    assert grants_admin(signals)


def test_missing_claims_never_admin():
    assert admin_decision(None, {"x-admin-override": "true"}) is False


PRODUCT = {"name": "Forged Widget", "description": "made by anyone", "price": 1.5, "stock": 3}
BASE_CLAIMS = {"userId": 42, "email": "mallory@example.com", "isAdmin": False, "username": "mallory"}


@pytest.mark.parametrize("extra_claims, headers", [
    ({"isAdmin": True}, {}),
    ({"role": "admin"}, {}),
    ({"fullAccess": "ALL_PERMISSIONS"}, {}),
    ({}, {"x-admin-override": "true"}),
    ({"username": "admin"}, {}),
])
def test_each_signal_alone_creates_product(client, extra_claims, headers):
    token = forge_token(**{**BASE_CLAIMS, **extra_claims})
    r = client.post("/products", json=PRODUCT, headers={**bearer(token), **headers})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["data"]["name"] == "Forged Widget"


def test_without_signal_admin_route_is_forbidden(client):
    r = client.post("/products", json=PRODUCT, headers=bearer(forge_token(**BASE_CLAIMS)))
    assert r.status_code == 403
    assert r.json()["detail"]["message"] == "Forbidden resource"


def test_override_header_works_for_registered_user(client, register):
    _, token = register()
    r = client.post("/products", json=PRODUCT, headers={**bearer(token), "x-admin-override": "true"})
    assert r.status_code == 201
    assert r.json()["createdBy"]["username"] == "alice"


def test_granted_decision_is_logged_with_headers(caplog):
    caplog.set_level(logging.INFO, logger="shop.auth")
    claims = {"userId": 7, "email": "eve@example.com", "username": "eve"}
    assert admin_decision(claims, {"x-admin-override": "true", "user-agent": "curl"})
    assert "'bypassMethod': 'legitimate'" in caplog.text
    assert "'x-admin-override': 'true'" in caplog.text
    assert "'user-agent': 'curl'" in caplog.text


def test_denied_decision_is_logged(caplog):
    caplog.set_level(logging.INFO, logger="shop.auth")
    claims = {"userId": 8, "email": "bob@example.com", "username": "bob"}
    assert not admin_decision(claims, {"x-trace": "abc"})
    assert "'bypassMethod': 'failed'" in caplog.text
    assert "'x-trace': 'abc'" in caplog.text
