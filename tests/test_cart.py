from __future__ import annotations

import pytest

from common.exceptions import InvalidTarget, NotFound, ValidationFailed
from common.helpers import DB_INT_MAX
from modules.cart.models import Cart, CartItem
from modules.cart.service import cart_service
from modules.catalog.service import product_service
from modules.package.service import package_service

from conftest import FLIGHT, HOTEL, auth, create_product, make_user, session_scope


@pytest.fixture
def product_id(client, admin_token):
    return create_product(client, admin_token, FLIGHT)["id"]


@pytest.fixture
def package_id(client, admin_token, product_id):
    r = client.post(
        "/packages", json={"name": "Combo", "price": 120, "product_ids": [product_id]}, headers=auth(admin_token),
    )
    return r.json()["id"]


def _add(client, token, **body):
    return client.post("/cart/items", json=body, headers=auth(token))


# ==========================================
# HTTP
# ==========================================

def test_get_cart_creates_once(client, client_token):
    first = client.get("/cart", headers=auth(client_token))
    second = client.get("/cart", headers=auth(client_token))
    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["items"] == []

    with session_scope() as s:
        assert s.query(Cart).count() == 1


def test_cart_requires_authentication(client):
    assert client.get("/cart").status_code == 401
    assert client.post("/cart/items", json={"product_id": 1}).status_code == 401


def test_add_same_product_merges_quantity(client, client_token, product_id):
    r1 = _add(client, client_token, product_id=product_id, quantity=2)
    r2 = _add(client, client_token, product_id=product_id, quantity=3)
    assert r1.status_code == r2.status_code == 201
    assert r1.json()["id"] == r2.json()["id"]
    assert r2.json()["quantity"] == 5

    cart = client.get("/cart", headers=auth(client_token)).json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 5
    assert cart["items"][0]["product"]["details"]["origin"] == "Buenos Aires"
    assert cart["item_count"] == 5


def test_add_defaults_to_quantity_one(client, client_token, product_id):
    r = _add(client, client_token, productId=product_id)
    assert r.json()["quantity"] == 1


def test_product_and_package_lines_are_separate(client, client_token, product_id, package_id):
    _add(client, client_token, product_id=product_id)
    r = _add(client, client_token, package_id=package_id, quantity=2)
    assert r.status_code == 201
    item = r.json()
    assert item["package_id"] == package_id
    assert item["product_id"] is None
    assert item["package"]["name"] == "Combo"

    assert len(client.get("/cart", headers=auth(client_token)).json()["items"]) == 2


def test_invalid_targets(client, client_token, product_id, package_id):
    both = _add(client, client_token, product_id=product_id, package_id=package_id)
    assert both.status_code == 400
    assert _add(client, client_token, quantity=1).status_code == 400
    assert _add(client, client_token, product_id=product_id, quantity=0).status_code == 400
    assert _add(client, client_token, product_id=987654).status_code == 404
    assert _add(client, client_token, package_id=987654).status_code == 404


def test_update_and_remove_item(client, client_token, product_id):
    item_id = _add(client, client_token, product_id=product_id).json()["id"]

    r = client.put(f"/cart/items/{item_id}", json={"quantity": 7}, headers=auth(client_token))
    assert r.status_code == 200
    assert r.json()["quantity"] == 7
    assert client.put(f"/cart/items/{item_id}", json={"quantity": 0}, headers=auth(client_token)).status_code == 400

    r = client.delete(f"/cart/items/{item_id}", headers=auth(client_token))
    assert r.status_code == 200
    assert r.json() == {"success": True, "id": item_id}
    assert client.delete(f"/cart/items/{item_id}", headers=auth(client_token)).status_code == 404


def test_other_users_items_are_not_found(client, client_token, product_id):
    item_id = _add(client, client_token, product_id=product_id).json()["id"]
    intruder, _ = make_user("intruder@example.com")

    r = client.put(f"/cart/items/{item_id}", json={"quantity": 99}, headers=auth(intruder))
    assert r.status_code == 404
    assert r.json()["message"] == "Cart item not found"
    assert client.delete(f"/cart/items/{item_id}", headers=auth(intruder)).status_code == 404

    # Owner's item untouched; intruder's cart is separate
    assert client.get("/cart", headers=auth(client_token)).json()["items"][0]["quantity"] == 1
    assert client.get("/cart", headers=auth(intruder)).json()["items"] == []


def test_clear_cart(client, client_token, product_id, package_id):
    _add(client, client_token, product_id=product_id)
    _add(client, client_token, package_id=package_id)

    assert client.delete("/cart", headers=auth(client_token)).status_code == 204
    cart = client.get("/cart", headers=auth(client_token)).json()
    assert cart["items"] == []

    # Clearing an empty or never-created cart is fine
    assert client.delete("/cart", headers=auth(client_token)).status_code == 204
    other, _ = make_user("fresh@example.com")
    assert client.delete("/cart", headers=auth(other)).status_code == 204


def test_admin_has_own_cart(client, admin_token, client_token, product_id):
    _add(client, admin_token, product_id=product_id, quantity=4)
    assert client.get("/cart", headers=auth(client_token)).json()["items"] == []
    assert client.get("/cart", headers=auth(admin_token)).json()["items"][0]["quantity"] == 4


def test_deleting_package_removes_cart_lines(client, admin_token, client_token, package_id):
    _add(client, client_token, package_id=package_id)
    assert client.delete(f"/packages/{package_id}", headers=auth(admin_token)).status_code == 204
    assert client.get("/cart", headers=auth(client_token)).json()["items"] == []


# ==========================================
# Service level
# ==========================================

@pytest.fixture
def hotel(db, admin_identity):
    return product_service.create_product(
        db, admin_identity, {"name": HOTEL["name"], "price": 200, "kind": "HOTEL"}, HOTEL["details"],
    )


def test_service_get_or_create_is_idempotent(db, client_identity):
    a = cart_service.get_or_create_cart(db, client_identity)
    b = cart_service.get_or_create_cart(db, client_identity)
    assert a.id == b.id
    assert db.query(Cart).filter(Cart.user_id == client_identity.subject_id).count() == 1


def test_service_add_merges(db, client_identity, hotel):
    cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=2)
    item = cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=3)
    assert item.quantity == 5
    assert db.query(CartItem).count() == 1


def test_service_insert_race_falls_back_to_increment(db, client_identity, hotel, monkeypatch):
    """First increment misses, insert then hits the unique constraint, second increment applies."""
    cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=1)

    real_increment = cart_service._increment
    calls = []

    def flaky_increment(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            return 0
        return real_increment(*args, **kwargs)

    monkeypatch.setattr(cart_service, "_increment", flaky_increment)
    monkeypatch.setattr(cart_service, "_line_exists", lambda *args: False)
    item = cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=2)
    assert len(calls) == 2
    assert item.quantity == 3
    assert db.query(CartItem).count() == 1


def test_service_errors(db, client_identity, admin_identity, hotel):
    package = package_service.create_package(db, admin_identity, "Stay", "", 150, [hotel.id])
    with pytest.raises(InvalidTarget):
        cart_service.add_item(db, client_identity, product_id=hotel.id, package_id=package.id)
    with pytest.raises(InvalidTarget):
        cart_service.add_item(db, client_identity)
    with pytest.raises(ValidationFailed):
        cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=0)
    with pytest.raises(NotFound):
        cart_service.add_item(db, client_identity, package_id=package.id + 1)

    item = cart_service.add_item(db, client_identity, package_id=package.id)
    with pytest.raises(NotFound):
        cart_service.remove_item(db, admin_identity, item.id)
    with pytest.raises(NotFound):
        cart_service.update_item_quantity(db, admin_identity, item.id, 3)
    assert cart_service.update_item_quantity(db, client_identity, item.id, 3).quantity == 3


def test_service_cart_create_race_returns_existing_cart(db, client_identity, monkeypatch):
    """Lookup misses, another request's cart is already there: the insert loses and the winner comes back."""
    winner = Cart(user_id=client_identity.subject_id)
    db.add(winner)
    db.flush()

    monkeypatch.setattr(cart_service, "_find_cart", lambda *args: None)
    cart = cart_service.get_or_create_cart(db, client_identity)

    assert cart.id == winner.id
    assert db.query(Cart).filter(Cart.user_id == client_identity.subject_id).count() == 1


def test_service_quantity_limits(db, client_identity, hotel):
    with pytest.raises(ValidationFailed):
        cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=DB_INT_MAX + 1)

    item = cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=DB_INT_MAX)
    with pytest.raises(ValidationFailed):
        cart_service.add_item(db, client_identity, product_id=hotel.id, quantity=1)
    db.refresh(item)
    assert item.quantity == DB_INT_MAX

    with pytest.raises(NotFound):
        cart_service.update_item_quantity(db, client_identity, 2**40, 1)


# ==========================================
# Oversized numbers
# ==========================================

def test_oversized_quantity_rejected(client, client_token, product_id):
    assert _add(client, client_token, product_id=product_id, quantity=2**63).status_code == 400
    assert _add(client, client_token, product_id=product_id, quantity=DB_INT_MAX).status_code == 201

    r = _add(client, client_token, product_id=product_id, quantity=1)
    assert r.status_code == 400
    assert client.get("/cart", headers=auth(client_token)).json()["items"][0]["quantity"] == DB_INT_MAX

    item_id = client.get("/cart", headers=auth(client_token)).json()["items"][0]["id"]
    assert client.put(f"/cart/items/{item_id}", json={"quantity": 2**40}, headers=auth(client_token)).status_code == 400


def test_oversized_ids_are_not_found(client, client_token):
    huge = 99999999999999999999
    assert _add(client, client_token, product_id=huge).status_code == 404
    assert _add(client, client_token, package_id=huge).status_code == 404
    assert client.put(f"/cart/items/{huge}", json={"quantity": 1}, headers=auth(client_token)).status_code == 404
    assert client.delete(f"/cart/items/{huge}", headers=auth(client_token)).status_code == 404
