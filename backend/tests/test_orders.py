import threading
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from database import Base
from models.log import Log
from models.users import User
from models.order import Order, OrderItem
from models.product import Product
from schemas.order import OrderCreatePayload
from services import orders as order_service
from utils.errors import ConflictError, InsufficientStockError, InvalidRequestError, NotFoundError


def stock_of(db, product_id):
    return db.query(Product.stock).filter(Product.id == product_id).scalar()


def add_to_cart(client, headers, product, quantity, size="M", color="Blue"):
    res = client.post("/api/cart/add", json={
        "productId": product.id, "quantity": quantity, "size": size, "color": color,
        "price": f"{Decimal(product.price):.2f}",
    }, headers=headers)
    assert res.status_code == 200
    return res.json()


def test_checkout_reserves_stock_and_empties_cart(client, db, customer_headers, make_product, order_payload):
    product = make_product(id=7, price=Decimal("500.00"), stock=10)
    add_to_cart(client, customer_headers, product, 2)

    res = client.post("/api/orders", json=order_payload([(product, 2, "M", "Blue")]), headers=customer_headers)

    assert res.status_code == 201
    order = res.json()
    assert order["status"] == "pending"
    assert order["paymentStatus"] == "pending"
    assert order["subtotal"] == "1000.00"
    assert order["orderNumber"].startswith("BP-")
    assert len(order["items"]) == 1
    assert order["items"][0]["productId"] == 7
    assert order["items"][0]["total"] == "1000.00"

    assert stock_of(db, 7) == 8
    assert client.get("/api/cart", headers=customer_headers).json()["items"] == []


def test_each_line_total_is_price_times_quantity(client, customer_headers, make_product, order_payload):
    tee = make_product(price=Decimal("450.00"))
    cap = make_product(price=Decimal("199.99"))
    payload = order_payload([(tee, 3, "S", "Red"), (cap, 2, "M", "Blue")])
    # Line totals are computed when omitted
    for item in payload["items"]:
        del item["total"]

    res = client.post("/api/orders", json=payload, headers=customer_headers)

    assert res.status_code == 201
    items = res.json()["items"]
    assert len(items) == 2
    assert [i["total"] for i in items] == ["1350.00", "399.98"]
    assert res.json()["subtotal"] == "1749.98"


def test_billing_address_defaults_to_shipping(client, customer_headers, make_product, order_payload, address):
    product = make_product()
    res = client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")]), headers=customer_headers)

    body = res.json()
    assert body["billingAddress"] == body["shippingAddress"]
    assert body["shippingAddress"]["city"] == address["city"]
    assert body["shippingAddress"]["country"] == "Bangladesh"


def test_insufficient_stock_rolls_back_whole_order(client, db, customer_headers, make_product, order_payload):
    plenty = make_product(stock=5)
    scarce = make_product(stock=1)
    add_to_cart(client, customer_headers, plenty, 2)
    add_to_cart(client, customer_headers, scarce, 1)

    payload = order_payload([(plenty, 2, "M", "Blue"), (scarce, 3, "M", "Blue")])
    res = client.post("/api/orders", json=payload, headers=customer_headers)

    assert res.status_code == 409
    assert "Insufficient stock" in res.json()["detail"]
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0
    assert stock_of(db, plenty.id) == 5
    assert stock_of(db, scarce.id) == 1
    # A failed order leaves the cart intact
    assert len(client.get("/api/cart", headers=customer_headers).json()["items"]) == 2


def test_duplicate_order_number_is_conflict_without_partial_write(client, db, customer_headers, make_product,
                                                                  order_payload):
    product = make_product(stock=10)
    payload = order_payload([(product, 2, "M", "Blue")], orderNumber="BP-1700000000000")

    assert client.post("/api/orders", json=payload, headers=customer_headers).status_code == 201
    add_to_cart(client, customer_headers, product, 1)

    res = client.post("/api/orders", json=payload, headers=customer_headers)

    assert res.status_code == 409
    assert db.query(Order).count() == 1
    assert db.query(OrderItem).count() == 1
    assert stock_of(db, product.id) == 8
    assert len(client.get("/api/cart", headers=customer_headers).json()["items"]) == 1


def test_failed_order_is_audited(client, db, customer, customer_headers, make_product, order_payload):
    product = make_product(stock=1)
    client.post("/api/orders", json=order_payload([(product, 2, "M", "Blue")]), headers=customer_headers)

    log = db.query(Log).filter(Log.action == "ORDER_CREATE").one()
    assert log.status == "FAIL"
    assert log.user_id == customer.id


def test_unknown_product_is_not_found(client, db, customer_headers, make_product, order_payload):
    ghost = make_product()
    payload = order_payload([(ghost, 1, "M", "Blue")])
    payload["items"][0]["productId"] = 9999

    res = client.post("/api/orders", json=payload, headers=customer_headers)

    assert res.status_code == 404
    assert db.query(Order).count() == 0


@pytest.mark.parametrize("field,value", [
    ("subtotal", "999.00"),
    ("total", "1.00"),
])
def test_inconsistent_amounts_are_rejected(client, db, customer_headers, make_product, order_payload, field, value):
    product = make_product()
    payload = order_payload([(product, 2, "M", "Blue")])
    payload[field] = value

    res = client.post("/api/orders", json=payload, headers=customer_headers)

    assert res.status_code == 400
    assert db.query(Order).count() == 0
    assert stock_of(db, product.id) == 10


def test_wrong_line_total_is_rejected(client, customer_headers, make_product, order_payload):
    product = make_product()
    payload = order_payload([(product, 2, "M", "Blue")])
    payload["items"][0]["total"] = "500.00"

    res = client.post("/api/orders", json=payload, headers=customer_headers)
    assert res.status_code == 400


def test_initial_status_must_be_pending(client, customer_headers, make_product, order_payload):
    product = make_product()
    payload = order_payload([(product, 1, "M", "Blue")], status="shipped")

    res = client.post("/api/orders", json=payload, headers=customer_headers)
    assert res.status_code == 422


def test_empty_order_fails_validation(client, customer_headers, make_product, order_payload):
    payload = order_payload([])
    res = client.post("/api/orders", json=payload, headers=customer_headers)
    assert res.status_code == 422


def test_order_requires_token(client, make_product, order_payload):
    product = make_product()
    res = client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")]))
    assert res.status_code == 401


def test_cart_clear_failure_does_not_fail_order(client, db, customer_headers, make_product, order_payload,
                                                monkeypatch):
    product = make_product()
    add_to_cart(client, customer_headers, product, 1)

    def broken_clear(db, cart):
        raise OperationalError("DELETE FROM cart_items", {}, Exception("database is locked"))

    monkeypatch.setattr("services.cart.clear", broken_clear)
    res = client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")]), headers=customer_headers)

    assert res.status_code == 201
    assert db.query(Order).count() == 1
    assert len(client.get("/api/cart", headers=customer_headers).json()["items"]) == 1


def test_storage_failure_maps_to_500_and_rolls_back(client, db, customer_headers, make_product, order_payload,
                                                    monkeypatch):
    product = make_product()

    def broken_decrement(db, product_id, quantity):
        raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))

    monkeypatch.setattr("services.orders._decrement_stock", broken_decrement)
    res = client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")]), headers=customer_headers)

    assert res.status_code == 500
    assert res.json() == {"detail": "Failed to create order"}
    assert db.query(Order).count() == 0


def test_list_orders_returns_own_orders_newest_first(client, customer_headers, other_headers, make_product,
                                                     order_payload):
    product = make_product(stock=50)
    first = client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")], orderNumber="BP-1"),
                        headers=customer_headers).json()
    second = client.post("/api/orders", json=order_payload([(product, 2, "M", "Blue")], orderNumber="BP-2"),
                         headers=customer_headers).json()
    client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")], orderNumber="BP-3"),
                headers=other_headers)

    res = client.get("/api/orders", headers=customer_headers)

    assert res.status_code == 200
    assert [o["id"] for o in res.json()] == [second["id"], first["id"]]
    assert all(o["items"] for o in res.json())


def test_order_detail_visible_to_owner_and_admin_only(client, customer_headers, other_headers, admin_headers,
                                                      make_product, order_payload):
    product = make_product()
    order = client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")]),
                        headers=customer_headers).json()

    assert client.get(f"/api/orders/{order['id']}", headers=customer_headers).status_code == 200
    assert client.get(f"/api/orders/{order['id']}", headers=other_headers).status_code == 404
    assert client.get(f"/api/orders/{order['id']}", headers=admin_headers).status_code == 200


# ---- service level ----

def draft_for(lines, **overrides):
    items = [
        {"product_id": p.id, "product_name": p.name, "quantity": q, "size": "M", "color": "Blue", "price": p.price}
        for p, q in lines
    ]
    subtotal = sum((Decimal(p.price) * q for p, q in lines), Decimal("0"))
    data = {
        "subtotal": subtotal,
        "tax": Decimal("0"),
        "shipping": Decimal("0"),
        "total": subtotal,
        "shipping_address": {"first_name": "Rahim", "last_name": "Uddin", "street": "Road 5",
                             "city": "Dhaka", "zip_code": "1207"},
        "payment_method": "cod",
        "items": items,
    }
    data.update(overrides)
    return OrderCreatePayload(**data)


def test_create_order_decrements_each_product(db, customer, make_product):
    a = make_product(stock=4)
    b = make_product(stock=9)
    draft = draft_for([(b, 2), (a, 4)])

    order = order_service.create_order(db, customer, draft, draft.items)

    assert len(order.items) == 2
    assert stock_of(db, a.id) == 0
    assert stock_of(db, b.id) == 7


def test_sequential_orders_cannot_oversell(db, customer, other_customer, make_product):
    product = make_product(stock=3)
    first = draft_for([(product, 2)], order_number="BP-A")
    second = draft_for([(product, 2)], order_number="BP-B")

    order_service.create_order(db, customer, first, first.items)
    with pytest.raises(InsufficientStockError):
        order_service.create_order(db, other_customer, second, second.items)

    assert stock_of(db, product.id) == 1
    assert db.query(Order).count() == 1


def test_duplicate_number_raises_conflict(db, customer, make_product):
    product = make_product()
    draft = draft_for([(product, 1)], order_number="BP-DUP")
    order_service.create_order(db, customer, draft, draft.items)

    with pytest.raises(ConflictError):
        order_service.create_order(db, customer, draft, draft.items)
    assert stock_of(db, product.id) == 9


def test_missing_product_raises_not_found(db, customer, make_product):
    product = make_product()
    draft = draft_for([(product, 1)])
    draft.items[0].product_id = 4242

    with pytest.raises(NotFoundError):
        order_service.create_order(db, customer, draft, draft.items)
    assert db.query(Order).count() == 0


def test_empty_line_items_are_rejected(db, customer, make_product):
    draft = draft_for([(make_product(), 1)])
    with pytest.raises(InvalidRequestError):
        order_service.create_order(db, customer, draft, [])


def test_generated_order_numbers_use_prefix(db, customer, make_product):
    draft = draft_for([(make_product(), 1)])
    order = order_service.create_order(db, customer, draft, draft.items)
    assert order.order_number.startswith("BP-")


def test_archived_product_cannot_be_ordered(db, customer, make_product):
    product = make_product(stock=5, is_active=False)
    draft = draft_for([(product, 1)])

    with pytest.raises(NotFoundError):
        order_service.create_order(db, customer, draft, draft.items)
    assert stock_of(db, product.id) == 5
    assert db.query(Order).count() == 0


def test_generated_number_is_redrawn_on_collision(db, customer, make_product, monkeypatch):
    product = make_product()
    numbers = iter(["BP-1700000000000-0001", "BP-1700000000000-0001", "BP-1700000000000-0002"])
    monkeypatch.setattr("services.orders.generate_order_number", lambda: next(numbers))

    first = draft_for([(product, 1)])
    second = draft_for([(product, 1)])
    order_service.create_order(db, customer, first, first.items)
    order = order_service.create_order(db, customer, second, second.items)

    assert order.order_number == "BP-1700000000000-0002"
    assert db.query(Order).count() == 2


def test_explicit_number_collision_is_still_a_conflict(db, customer, make_product, monkeypatch):
    product = make_product()
    monkeypatch.setattr("services.orders.generate_order_number", lambda: "BP-1700000000000-0009")
    taken = draft_for([(product, 1)])
    order_service.create_order(db, customer, taken, taken.items)

    again = draft_for([(product, 1)], order_number="BP-1700000000000-0009")
    with pytest.raises(ConflictError):
        order_service.create_order(db, customer, again, again.items)


def test_concurrent_orders_never_oversell(tmp_path):
    # File-backed database so every thread opens its own connection
    engine = create_engine(f"sqlite:///{tmp_path / 'orders.db'}",
                           connect_args={"check_same_thread": False, "timeout": 30})
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    threads_n, orders_per_thread, quantity, initial_stock = 8, 5, 2, 30
    with Session() as setup:
        product = Product(name="Hoodie", sku="HOOD-01", price=Decimal("900.00"), stock=initial_stock,
                          sizes=[], colors=[], reference_images=[])
        users = [User(email=f"buyer{i}@example.com", password_hash="x", role="customer")
                 for i in range(threads_n)]
        setup.add(product)
        setup.add_all(users)
        setup.commit()
        item = SimpleNamespace(id=product.id, name=product.name, price=product.price)
        user_ids = [u.id for u in users]

    committed, failures = [], []
    lock = threading.Lock()
    barrier = threading.Barrier(threads_n)

    def place_orders(t, user_id):
        barrier.wait()
        for i in range(orders_per_thread):
            with Session() as session:
                user = session.get(User, user_id)
                draft = draft_for([(item, quantity)], order_number=f"BP-T{t}-{i}")
                try:
                    order = order_service.create_order(session, user, draft, draft.items)
                except InsufficientStockError as exc:
                    with lock:
                        failures.append(exc)
                else:
                    with lock:
                        committed.append(order.order_number)

    workers = [threading.Thread(target=place_orders, args=(t, uid)) for t, uid in enumerate(user_ids)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()

    with Session() as check:
        final_stock = check.query(Product.stock).filter(Product.id == item.id).scalar()
        order_count = check.query(Order).count()
        item_count = check.query(OrderItem).count()

    assert len(committed) + len(failures) == threads_n * orders_per_thread
    assert final_stock == initial_stock - quantity * len(committed)
    assert final_stock == 0
    assert order_count == len(committed) == initial_stock // quantity
    assert item_count == order_count
    engine.dispose()
