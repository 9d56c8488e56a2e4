"""API tests for the shop, checkout, customer area and back office"""

import pytest

from storefront.models import Product
from storefront.services.notifications import NotificationKind

CHECKOUT_FORM = {
    "customer_name": "Jane Doe",
    "customer_email": "jane@example.com",
    "customer_phone": "555-0100",
    "customer_dob": "1990-05-01",
}


async def add(client, product, quantity=1):
    response = await client.post("/cart/add", json={"product_id": product.id, "quantity": quantity})
    assert response.status_code == 200, response.text
    return response


@pytest.mark.asyncio
async def test_shop_requires_age_gate(client, test_products):
    response = await client.get("/products")
    assert response.status_code == 403

    response = await client.get("/age-verification")
    assert response.json()["verified"] is False
    assert response.json()["age_requirement"] == 21

    response = await client.post("/age-verification", json={"confirmed": False})
    assert response.status_code == 422

    response = await client.post("/age-verification", json={"confirmed": True})
    assert response.status_code == 200

    response = await client.get("/products")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_shop_lists_only_active_products(shop_client, test_products):
    response = await shop_client.get("/products", params={"sort": "price"})
    assert response.status_code == 200
    names = [item["name"] for item in response.json()["items"]]
    assert "Retired Flavor" not in names
    assert names[0] == "Lighter"

    response = await shop_client.get(f"/products/{test_products['retired'].id}")
    assert response.status_code == 404

    response = await shop_client.get("/products/featured")
    assert [item["sku"] for item in response.json()] == ["01002"]


@pytest.mark.asyncio
async def test_cart_add_rejects_excess_quantity(shop_client, test_products):
    response = await shop_client.post(
        "/cart/add", json={"product_id": test_products["limited"].id, "quantity": 10}
    )
    assert response.status_code == 409

    response = await shop_client.get("/cart/count")
    assert response.json() == {"count": 0}


@pytest.mark.asyncio
async def test_cart_and_checkout_flow(shop_client, test_db, test_products, notifications):
    pod_id = test_products["pod"].id

    response = await add(shop_client, test_products["pod"], 3)
    assert response.json()["message"] == "Product added to cart!"
    await add(shop_client, test_products["papers"], 1)

    response = await shop_client.get("/checkout")
    assert response.status_code == 200
    assert response.json()["total_price"] == "73.15"

    response = await shop_client.post("/checkout", json=CHECKOUT_FORM)
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["confirmation_number"].startswith("PCV-")
    assert data["status"] == "pending"
    assert data["subtotal"] == "70.00"
    assert data["tax_amount"] == "3.15"
    assert data["total_price"] == "73.15"
    assert len(data["items"]) == 2
    assert data["customer"]["email"] == "jane@example.com"

    assert notifications == [(NotificationKind.RECEIVED, data["id"])]
    assert (await test_db.get(Product, pod_id, populate_existing=True)).stock == 7

    response = await shop_client.get("/cart/count")
    assert response.json() == {"count": 0}

    response = await shop_client.get(f"/confirmation/{data['confirmation_number']}")
    assert response.status_code == 200
    assert response.json()["id"] == data["id"]

    response = await shop_client.get("/confirmation/PCV-NOPE00")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_checkout_with_empty_cart(shop_client):
    response = await shop_client.get("/checkout")
    assert response.status_code == 409

    response = await shop_client.post("/checkout", json=CHECKOUT_FORM)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_checkout_rejects_underage(shop_client, test_products):
    await add(shop_client, test_products["juice"])

    response = await shop_client.post("/checkout", json={**CHECKOUT_FORM, "customer_dob": "2015-01-01"})

    assert response.status_code == 422
    assert "customer_dob" in response.json()["detail"]["errors"]


@pytest.mark.asyncio
async def test_honeypot_rejects_bots(shop_client, test_products, notifications):
    await add(shop_client, test_products["juice"])

    response = await shop_client.post("/checkout", json={**CHECKOUT_FORM, "website": "http://spam.example"})

    assert response.status_code == 400
    assert notifications == []
    response = await shop_client.get("/cart/count")
    assert response.json() == {"count": 1}


@pytest.mark.asyncio
async def test_checkout_rate_limit(shop_client, test_products):
    for _ in range(3):
        await add(shop_client, test_products["juice"])
        response = await shop_client.post("/checkout", json=CHECKOUT_FORM)
        assert response.status_code == 201

    await add(shop_client, test_products["juice"])
    response = await shop_client.post("/checkout", json=CHECKOUT_FORM)
    assert response.status_code == 429


@pytest.mark.asyncio
async def test_admin_login(client, test_admin_user):
    response = await client.post(
        "/auth/login", data={"username": "admin@example.com", "password": "adminpass123"}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.json()["role"] == "admin"

    response = await client.post(
        "/auth/login", data={"username": "admin@example.com", "password": "wrong"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_requires_token(client):
    response = await client.get("/admin/reservations")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_updates_reservation_status(shop_client, test_admin_user, test_db, test_products, notifications):
    from storefront.security import create_access_token

    await add(shop_client, test_products["pod"], 2)
    reservation = (await shop_client.post("/checkout", json=CHECKOUT_FORM)).json()

    shop_client.headers["Authorization"] = f"Bearer {create_access_token(test_admin_user)}"
    url = f"/admin/reservations/{reservation['id']}/status"

    response = await shop_client.patch(url, json={"status": "ready"})
    assert response.status_code == 200
    assert response.json()["changed"] is True
    assert response.json()["reservation"]["status"] == "ready"

    response = await shop_client.patch(url, json={"status": "cancelled"})
    assert response.json()["reservation"]["cancellation_reason"] == "admin_cancelled"
    assert (await test_db.get(Product, test_products["pod"].id, populate_existing=True)).stock == 10

    response = await shop_client.patch(url, json={"status": "pending"})
    assert response.status_code == 409

    response = await shop_client.patch(url, json={"status": "expired"})
    assert response.status_code == 422

    assert [kind for kind, _ in notifications] == [
        NotificationKind.RECEIVED,
        NotificationKind.READY,
        NotificationKind.CANCELLED,
    ]

    response = await shop_client.get("/admin/reservations", params={"search": "jane"})
    assert response.json()["total"] == 1
    assert response.json()["status_counts"]["cancelled"] == 1


@pytest.mark.asyncio
async def test_admin_category_crud(admin_client, test_category, test_products):
    response = await admin_client.post("/admin/categories", json={"code": "02", "name": "E-Liquid"})
    assert response.status_code == 201
    category = response.json()
    assert category["slug"] == "e-liquid"
    assert category["sort_order"] == 2

    response = await admin_client.patch(f"/admin/categories/{category['id']}", json={"name": "E Liquid Salts"})
    assert response.json()["slug"] == "e-liquid-salts"

    response = await admin_client.delete(f"/admin/categories/{test_category.id}")
    assert response.status_code == 409
    assert "has 6 products assigned" in response.json()["detail"]

    response = await admin_client.delete(f"/admin/categories/{category['id']}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_product_duplicate_sku(admin_client, test_products, test_category):
    response = await admin_client.post("/admin/products", json={
        "sku": "01001", "name": "Copy", "price": "1.00", "category_id": test_category.id,
    })
    assert response.status_code == 422
    assert "sku" in response.json()["detail"]["errors"]


@pytest.mark.asyncio
async def test_admin_import_template(admin_client):
    response = await admin_client.get("/admin/products/import/template")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[0] == "id,name,sku,price,tax,status,track_inv,on_hand,category"


@pytest.mark.asyncio
async def test_admin_import_rejects_non_csv(admin_client):
    response = await admin_client.post(
        "/admin/products/import", files={"file": ("products.txt", b"hello", "text/plain")}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_customer_account_and_reorder(shop_client, test_products, test_admin_user):
    response = await shop_client.post("/account/register", json={
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "secretpass1",
        "password_confirmation": "secretpass1",
    })
    assert response.status_code == 201
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    await add(shop_client, test_products["juice"], 2)
    order = (await shop_client.post("/checkout", json=CHECKOUT_FORM)).json()

    response = await shop_client.get("/account", headers=headers)
    assert response.json()["total_orders"] == 1
    assert response.json()["pending_orders"] == 1

    response = await shop_client.get("/account/orders", headers=headers)
    assert [item["id"] for item in response.json()["items"]] == [order["id"]]

    response = await shop_client.post(f"/account/orders/{order['id']}/reorder", headers=headers)
    assert response.status_code == 200
    assert response.json()["added"] == 1
    assert response.json()["cart_count"] == 2

    # Customers cannot use the back office
    response = await shop_client.get("/admin/dashboard", headers=headers)
    assert response.status_code == 403

    # Admins are sent to their own login
    response = await shop_client.post(
        "/account/login", json={"email": "admin@example.com", "password": "adminpass123"}
    )
    assert response.status_code == 403

    response = await shop_client.post(
        "/account/login", json={"email": "jane@example.com", "password": "secretpass1"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_signed_in_customer_checks_out_with_phone_only(shop_client, test_products):
    response = await shop_client.post("/account/register", json={
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "secretpass1",
        "password_confirmation": "secretpass1",
    })
    assert response.status_code == 201

    response = await shop_client.post(
        "/account/login", json={"email": "jane@example.com", "password": "secretpass1"}
    )
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    await add(shop_client, test_products["juice"])
    response = await shop_client.post(
        "/checkout",
        json={"customer_phone": "555-0199", "customer_email": "someone@else.example"},
        headers=headers,
    )

    assert response.status_code == 201, response.text
    customer = response.json()["customer"]
    assert customer["email"] == "jane@example.com"
    assert customer["name"] == "Jane Doe"
    assert customer["phone"] == "555-0199"


@pytest.mark.asyncio
async def test_guest_checkout_requires_identity(shop_client, test_products):
    await add(shop_client, test_products["juice"])

    response = await shop_client.post("/checkout", json={"customer_phone": "555-0100"})

    assert response.status_code == 422
    assert "customer_name" in response.json()["detail"]["errors"]


@pytest.mark.asyncio
async def test_failed_checkouts_do_not_count_toward_rate_limit(shop_client, test_products):
    for _ in range(4):
        await add(shop_client, test_products["juice"])
        response = await shop_client.post("/checkout", json={**CHECKOUT_FORM, "customer_dob": "2015-01-01"})
        assert response.status_code == 422
        await shop_client.delete("/cart")

    await add(shop_client, test_products["juice"])
    response = await shop_client.post("/checkout", json=CHECKOUT_FORM)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_cart_update_unknown_product(shop_client, test_products):
    response = await shop_client.patch("/cart/9999", json={"quantity": 2})
    assert response.status_code == 404

    response = await shop_client.get("/cart/count")
    assert response.json() == {"count": 0}
