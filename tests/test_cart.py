from solarshop.models import CartItem, WishlistItem


def test_anonymous_cart_and_wishlist_are_empty(client):
    assert client.get("/cart").json() == []
    assert client.get("/wishlist").json() == []


def test_mutations_require_session(client, products):
    pid = products[0].id
    assert client.post("/cart", json={"product_id": pid}).status_code == 401
    assert client.put("/cart/item", json={"product_id": pid, "quantity": 1}).status_code == 401
    assert client.delete(f"/cart/item?product_id={pid}").status_code == 401
    assert client.post("/wishlist", json={"product_id": pid}).status_code == 401


def test_add_accumulates_quantity(client, auth_headers, products):
    pid = products[0].id
    client.post("/cart", json={"product_id": pid, "quantity": 2}, headers=auth_headers)
    client.post("/cart", json={"product_id": pid}, headers=auth_headers)

    cart = client.get("/cart", headers=auth_headers).json()
    assert len(cart) == 1
    assert cart[0]["id"] == pid
    assert cart[0]["name"] == "Mono Panel 450W"
    assert cart[0]["quantity"] == 3


def test_put_sets_quantity(client, auth_headers, products):
    pid = products[0].id
    client.post("/cart", json={"product_id": pid}, headers=auth_headers)

    res = client.put("/cart/item", json={"product_id": pid, "quantity": 5}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["item"]["quantity"] == 5
    assert client.get("/cart", headers=auth_headers).json()[0]["quantity"] == 5


def test_quantity_zero_deletes_the_row(client, db, auth_headers, products, user):
    pid = products[0].id
    client.post("/cart", json={"product_id": pid, "quantity": 2}, headers=auth_headers)

    res = client.put("/cart", json={"product_id": pid, "quantity": 0}, headers=auth_headers)
    assert res.status_code == 200

    assert db.query(CartItem).filter(CartItem.user_id == user.id).count() == 0
    assert all(line["id"] != pid for line in client.get("/cart", headers=auth_headers).json())


def test_negative_quantity_is_invalid(client, auth_headers, products):
    res = client.put("/cart/item", json={"product_id": products[0].id, "quantity": -1}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"detail": "Valid product id and quantity are required"}


def test_mutating_unknown_product_is_not_found(client, db, auth_headers):
    res = client.put("/cart/item", json={"product_id": 4242, "quantity": 1}, headers=auth_headers)
    assert res.status_code == 404
    assert client.post("/cart", json={"product_id": 4242}, headers=auth_headers).status_code == 404
    assert db.query(CartItem).count() == 0


def test_delete_item_and_clear(client, auth_headers, products):
    panel, inverter = products[0].id, products[1].id
    client.post("/cart", json={"product_id": panel}, headers=auth_headers)
    client.post("/cart", json={"product_id": inverter}, headers=auth_headers)

    res = client.delete(f"/cart/item?product_id={panel}", headers=auth_headers)
    assert res.status_code == 200
    assert [line["id"] for line in client.get("/cart", headers=auth_headers).json()] == [inverter]

    res = client.request("DELETE", "/cart", headers=auth_headers)
    assert res.json()["message"] == "Cart has been cleared."
    assert client.get("/cart", headers=auth_headers).json() == []


def test_delete_single_line_with_body(client, auth_headers, products):
    panel, inverter = products[0].id, products[1].id
    client.post("/cart", json={"product_id": panel}, headers=auth_headers)
    client.post("/cart", json={"product_id": inverter}, headers=auth_headers)

    res = client.request("DELETE", "/cart", json={"product_id": inverter}, headers=auth_headers)
    assert res.json()["message"] == "Item removed from cart."
    assert [line["id"] for line in client.get("/cart", headers=auth_headers).json()] == [panel]


def test_carts_are_per_user(client, auth_headers, other_headers, products):
    client.post("/cart", json={"product_id": products[0].id}, headers=auth_headers)
    assert client.get("/cart", headers=other_headers).json() == []


def test_wishlist_add_is_an_upsert(client, db, auth_headers, products, user):
    pid = products[0].id
    client.post("/wishlist", json={"product_id": pid}, headers=auth_headers)
    res = client.post("/wishlist", json={"product_id": pid}, headers=auth_headers)

    assert res.status_code == 200
    assert client.get("/wishlist", headers=auth_headers).json() == [pid]
    assert db.query(WishlistItem).filter(WishlistItem.user_id == user.id).count() == 1


def test_wishlist_delete_only_touches_own_row(client, auth_headers, other_headers, products):
    pid = products[0].id
    client.post("/wishlist", json={"product_id": pid}, headers=auth_headers)
    client.post("/wishlist", json={"product_id": pid}, headers=other_headers)

    client.request("DELETE", "/wishlist", json={"product_id": pid}, headers=other_headers)

    assert client.get("/wishlist", headers=auth_headers).json() == [pid]
    assert client.get("/wishlist", headers=other_headers).json() == []


def test_wishlist_unknown_product_is_not_found(client, auth_headers):
    assert client.post("/wishlist", json={"product_id": 777}, headers=auth_headers).status_code == 404
