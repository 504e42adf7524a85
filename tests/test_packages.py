from __future__ import annotations

import pytest

from common.exceptions import InvalidReference, NotFound, ValidationFailed
from modules.catalog.service import product_service
from modules.package.models import Package, PackageProduct
from modules.package.service import package_service

from conftest import EXCURSION, FLIGHT, HOTEL, TRANSPORT, auth, create_product, session_scope


def _products(client, token, n=2):
    payloads = [FLIGHT, HOTEL, TRANSPORT, EXCURSION]
    return [create_product(client, token, payloads[i % 4])["id"] for i in range(n)]


def test_create_combo_package(client, admin_token, client_token):
    ids = _products(client, admin_token, 2)
    r = client.post(
        "/packages",
        json={"name": "Combo", "description": "Flight + hotel", "price": 120, "productIds": ids},
        headers=auth(admin_token),
    )
    assert r.status_code == 201
    package = r.json()
    assert package["price"] == 120.0
    assert package["product_ids"] == ids
    assert [p["id"] for p in package["products"]] == ids

    # Readable by any authenticated user
    r = client.get(f"/packages/{package['id']}", headers=auth(client_token))
    assert r.status_code == 200
    assert r.json()["name"] == "Combo"
    assert len(client.get("/packages", headers=auth(client_token)).json()) == 1


def test_package_price_is_independent_of_members(client, admin_token):
    ids = _products(client, admin_token, 2)  # 1200 + 200
    r = client.post("/packages", json={"name": "Deal", "price": 99.99, "product_ids": ids}, headers=auth(admin_token))
    assert r.json()["price"] == 99.99


def test_duplicate_ids_are_collapsed(client, admin_token):
    [pid] = _products(client, admin_token, 1)
    r = client.post(
        "/packages", json={"name": "Solo", "price": 10, "product_ids": [pid, pid, pid]}, headers=auth(admin_token),
    )
    assert r.status_code == 201
    assert r.json()["product_ids"] == [pid]


def test_one_invalid_reference_persists_nothing(client, admin_token):
    ids = _products(client, admin_token, 5)
    r = client.post(
        "/packages",
        json={"name": "Broken", "price": 500, "product_ids": ids + [999999]},
        headers=auth(admin_token),
    )
    assert r.status_code == 400
    assert "not found" in r.json()["message"]

    with session_scope() as s:
        assert s.query(Package).count() == 0
        assert s.query(PackageProduct).count() == 0


def test_empty_package_rejected(client, admin_token):
    r = client.post("/packages", json={"name": "Empty", "price": 10, "product_ids": []}, headers=auth(admin_token))
    assert r.status_code == 400


def test_client_cannot_manage_packages(client, admin_token, client_token):
    ids = _products(client, admin_token, 1)
    body = {"name": "Nope", "price": 10, "product_ids": ids}
    assert client.post("/packages", json=body, headers=auth(client_token)).status_code == 403

    package = client.post("/packages", json=body, headers=auth(admin_token)).json()
    assert client.put(f"/packages/{package['id']}", json={"price": 1}, headers=auth(client_token)).status_code == 403
    assert client.delete(f"/packages/{package['id']}", headers=auth(client_token)).status_code == 403


def test_update_replaces_membership(client, admin_token):
    a, b, c = _products(client, admin_token, 3)
    package = client.post(
        "/packages", json={"name": "P", "price": 100, "product_ids": [a, b]}, headers=auth(admin_token),
    ).json()

    r = client.put(f"/packages/{package['id']}", json={"product_ids": [b, c]}, headers=auth(admin_token))
    assert r.status_code == 200
    assert sorted(r.json()["product_ids"]) == sorted([b, c])
    assert r.json()["name"] == "P"

    # Membership untouched when product_ids is omitted
    r = client.put(f"/packages/{package['id']}", json={"name": "Renamed", "price": 80}, headers=auth(admin_token))
    assert r.json()["name"] == "Renamed"
    assert r.json()["price"] == 80.0
    assert sorted(r.json()["product_ids"]) == sorted([b, c])


def test_update_with_invalid_reference_changes_nothing(client, admin_token):
    a, b = _products(client, admin_token, 2)
    package = client.post(
        "/packages", json={"name": "P", "price": 100, "product_ids": [a]}, headers=auth(admin_token),
    ).json()

    r = client.put(
        f"/packages/{package['id']}",
        json={"name": "Changed", "product_ids": [b, 424242]},
        headers=auth(admin_token),
    )
    assert r.status_code == 400

    current = client.get(f"/packages/{package['id']}", headers=auth(admin_token)).json()
    assert current["name"] == "P"
    assert current["product_ids"] == [a]


def test_delete_package_keeps_products(client, admin_token):
    ids = _products(client, admin_token, 2)
    package = client.post(
        "/packages", json={"name": "P", "price": 100, "product_ids": ids}, headers=auth(admin_token),
    ).json()

    assert client.delete(f"/packages/{package['id']}", headers=auth(admin_token)).status_code == 204
    assert client.get(f"/packages/{package['id']}", headers=auth(admin_token)).status_code == 404
    for pid in ids:
        assert client.get(f"/products/{pid}", headers=auth(admin_token)).status_code == 200
    # Products are deletable once no package references them
    assert client.delete(f"/products/{ids[0]}", headers=auth(admin_token)).status_code == 204


def test_missing_package(client, admin_token):
    assert client.get("/packages/31337", headers=auth(admin_token)).status_code == 404
    assert client.put("/packages/31337", json={"price": 1}, headers=auth(admin_token)).status_code == 404
    assert client.delete("/packages/31337", headers=auth(admin_token)).status_code == 404


# ==========================================
# Service level
# ==========================================

def test_service_reference_errors(db, admin_identity):
    product = product_service.create_product(
        db, admin_identity, {"name": "Bus", "price": 10, "kind": "TRANSPORT"}, {"vehicle_type": "Bus"},
    )
    with pytest.raises(InvalidReference):
        package_service.create_package(db, admin_identity, "P", "", 10, [product.id, product.id + 100])
    with pytest.raises(ValidationFailed):
        package_service.create_package(db, admin_identity, "P", "", 10, [])
    with pytest.raises(ValidationFailed):
        package_service.create_package(db, admin_identity, "  ", "", 10, [product.id])
    with pytest.raises(NotFound):
        package_service.get_package(db, admin_identity, 12345)


def test_oversized_product_id_is_an_invalid_reference(client, admin_token):
    [pid] = _products(client, admin_token, 1)
    r = client.post(
        "/packages", json={"name": "Big", "price": 10, "productIds": [pid, 2**64]}, headers=auth(admin_token),
    )
    assert r.status_code == 400
    assert r.json()["message"] == "1 of 2 products not found"
    with session_scope() as s:
        assert s.query(Package).count() == 0


def test_oversized_package_ids_are_not_found(client, admin_token):
    huge = 99999999999999999999
    assert client.get(f"/packages/{huge}", headers=auth(admin_token)).status_code == 404
    assert client.put(f"/packages/{huge}", json={"price": 1}, headers=auth(admin_token)).status_code == 404
    assert client.delete(f"/packages/{huge}", headers=auth(admin_token)).status_code == 404


def test_service_update_validates_before_assigning(db, admin_identity):
    product = product_service.create_product(
        db, admin_identity, {"name": "Bus", "price": 10, "kind": "TRANSPORT"}, {"vehicle_type": "Bus"},
    )
    package = package_service.create_package(db, admin_identity, "P", "", 10, [product.id])

    with pytest.raises(ValidationFailed):
        package_service.update_package(db, admin_identity, package.id, {"name": "Renamed", "price": -5})
    assert package.name == "P"
    assert not db.dirty

    with pytest.raises(InvalidReference):
        package_service.update_package(db, admin_identity, package.id, {"name": "Renamed", "product_ids": [424242]})
    assert package.name == "P"
    assert not db.dirty
