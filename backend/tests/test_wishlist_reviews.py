from decimal import Decimal

from models.product import Product


def test_wishlist_add_list_remove(client, customer_headers, make_product):
    product = make_product(name="Rain Boots")

    res = client.post("/api/wishlist", json={"productId": product.id}, headers=customer_headers)
    assert res.status_code == 201
    assert res.json()["productId"] == product.id

    listing = client.get("/api/wishlist", headers=customer_headers).json()
    assert len(listing) == 1
    assert listing[0]["product"]["name"] == "Rain Boots"

    res = client.delete(f"/api/wishlist/{product.id}", headers=customer_headers)
    assert res.status_code == 200
    assert client.get("/api/wishlist", headers=customer_headers).json() == []


def test_wishlist_duplicate_and_unknown(client, customer_headers, make_product):
    product = make_product()
    client.post("/api/wishlist", json={"productId": product.id}, headers=customer_headers)

    assert client.post("/api/wishlist", json={"productId": product.id},
                       headers=customer_headers).status_code == 409
    assert client.post("/api/wishlist", json={"productId": 999}, headers=customer_headers).status_code == 404
    assert client.delete("/api/wishlist/999", headers=customer_headers).status_code == 404


def test_wishlists_are_per_user(client, customer_headers, other_headers, make_product):
    product = make_product()
    client.post("/api/wishlist", json={"productId": product.id}, headers=customer_headers)

    assert client.get("/api/wishlist", headers=other_headers).json() == []
    assert client.delete(f"/api/wishlist/{product.id}", headers=other_headers).status_code == 404


def test_review_updates_product_rating(client, db, customer_headers, other_headers, make_product):
    product = make_product()

    res = client.post("/api/reviews", json={"productId": product.id, "rating": 5, "title": "Lovely"},
                      headers=customer_headers)
    assert res.status_code == 201
    assert res.json()["isVerified"] is False
    client.post("/api/reviews", json={"productId": product.id, "rating": 2}, headers=other_headers)

    rating, count = db.query(Product.rating, Product.review_count).filter(Product.id == product.id).one()
    assert count == 2
    assert rating == Decimal("3.50")


def test_review_by_buyer_is_verified(client, customer_headers, make_product, order_payload):
    product = make_product()
    client.post("/api/orders", json=order_payload([(product, 1, "M", "Blue")]), headers=customer_headers)

    res = client.post("/api/reviews", json={"productId": product.id, "rating": 4}, headers=customer_headers)

    assert res.json()["isVerified"] is True


def test_review_validation(client, customer_headers, make_product):
    product = make_product()
    assert client.post("/api/reviews", json={"productId": product.id, "rating": 6},
                       headers=customer_headers).status_code == 422
    assert client.post("/api/reviews", json={"productId": 999, "rating": 3},
                       headers=customer_headers).status_code == 404
    assert client.post("/api/reviews", json={"productId": product.id, "rating": 3}).status_code == 401


def test_product_reviews_show_author_without_email(client, customer_headers, make_product):
    product = make_product()
    client.post("/api/reviews", json={"productId": product.id, "rating": 4, "comment": "Fits well"},
                headers=customer_headers)

    res = client.get(f"/api/products/{product.id}/reviews")

    assert res.status_code == 200
    review = res.json()[0]
    assert review["comment"] == "Fits well"
    assert review["user"]["firstName"] == "Rahim"
    assert "email" not in review["user"]
    assert client.get("/api/products/999/reviews").status_code == 404
