import os

# Point the app at a private in-memory database before anything reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from database import Base, engine, get_db
from main import app
from models.users import User
from models.category import Category
from models.product import Product
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def auth_header(user: User) -> dict:
    token = create_access_token(data={"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email: str, role: str = "customer", first_name: str = "Test", last_name: str = "User") -> User:
        user = User(
            email=email,
            password_hash=get_password_hash(PASSWORD),
            role=role,
            first_name=first_name,
            last_name=last_name,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def customer(make_user):
    return make_user("customer@example.com", first_name="Rahim", last_name="Uddin")


@pytest.fixture
def other_customer(make_user):
    return make_user("other@example.com", first_name="Karim", last_name="Hossain")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role="admin", first_name="Store", last_name="Admin")


@pytest.fixture
def customer_headers(customer):
    return auth_header(customer)


@pytest.fixture
def other_headers(other_customer):
    return auth_header(other_customer)


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin)


@pytest.fixture
def category(db):
    cat = Category(name="Boys", slug="boys", description="Clothing for boys")
    db.add(cat)
    db.commit()
    db.refresh(cat)
    return cat


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        data = {
            "name": f"Cotton Tee {counter['n']}",
            "sku": f"TEE-{counter['n']:03d}",
            "description": "Soft cotton t-shirt",
            "price": Decimal("500.00"),
            "stock": 10,
            "sizes": ["S", "M", "L"],
            "colors": ["Blue", "Red"],
            "age_group": "5-8",
            "reference_images": [],
        }
        data.update(overrides)
        product = Product(**data)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def address():
    return {
        "firstName": "Rahim",
        "lastName": "Uddin",
        "street": "House 12, Road 5",
        "city": "Dhaka",
        "zipCode": "1207",
        "phone": "01700000000",
        "thana": "Dhanmondi",
    }


@pytest.fixture
def order_payload(address):
    """Build a POST /api/orders body from (product, quantity, size, color) lines."""
    def _build(lines, shipping: str = "150.00", **overrides) -> dict:
        items = []
        subtotal = Decimal("0.00")
        for product, quantity, size, color in lines:
            total = Decimal(product.price) * quantity
            subtotal += total
            items.append({
                "productId": product.id,
                "productName": product.name,
                "quantity": quantity,
                "size": size,
                "color": color,
                "price": f"{Decimal(product.price):.2f}",
                "total": f"{total:.2f}",
            })
        body = {
            "subtotal": f"{subtotal:.2f}",
            "tax": "0.00",
            "shipping": shipping,
            "total": f"{subtotal + Decimal(shipping):.2f}",
            "shippingAddress": address,
            "paymentMethod": "cod",
            "items": items,
        }
        body.update(overrides)
        return body
    return _build
