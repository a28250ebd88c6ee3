# backend/seed_db.py
"""Seed the storefront with an admin account, categories and sample products.

Safe to run repeatedly: existing rows (matched by email, slug or SKU) are kept.
Usage: python seed_db.py
"""
import os
import sys
from decimal import Decimal

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from dotenv import load_dotenv
load_dotenv()

from database import SessionLocal, init_db
from models.users import User
from models.category import Category
from models.product import Product
from utils.hashing import get_password_hash
from services.catalog import slugify

# Configuration
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "change-me-now")

CATEGORIES = [
    ("Boys", "Clothing for boys"),
    ("Girls", "Clothing for girls"),
    ("Baby", "Newborn and infant essentials"),
    ("Accessories", "Caps, bags and socks"),
]

# (name, sku, category, price, original price, stock, sizes, colors, age group, featured)
PRODUCTS = [
    ("Cotton Polo Shirt", "BOY-POLO-01", "Boys", "500.00", "650.00", 40, ["S", "M", "L"], ["Blue", "White"], "5-8", True),
    ("Denim Shorts", "BOY-SHRT-02", "Boys", "750.00", None, 25, ["M", "L"], ["Blue"], "8-12", False),
    ("Floral Summer Dress", "GRL-DRSS-01", "Girls", "1200.00", "1450.00", 18, ["S", "M"], ["Pink", "Yellow"], "5-8", True),
    ("Knitted Cardigan", "GRL-CARD-02", "Girls", "1650.00", None, 12, ["M", "L"], ["Cream"], "8-12", False),
    ("Organic Romper", "BBY-ROMP-01", "Baby", "890.00", None, 30, ["0-3M", "3-6M"], ["White", "Green"], "0-2", True),
    ("Sun Hat", "ACC-HAT-01", "Accessories", "350.00", None, 50, [], ["Beige"], "2-5", False),
]
# End Configuration


def seed_admin(session):
    admin = session.query(User).filter(User.email == ADMIN_EMAIL).first()
    if admin:
        print(f"Admin {ADMIN_EMAIL} already exists.")
        return
    session.add(User(
        email=ADMIN_EMAIL,
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role="admin",
        first_name="Store",
        last_name="Admin",
    ))
    print(f"Created admin {ADMIN_EMAIL}.")


def seed_catalog(session):
    categories = {}
    for name, description in CATEGORIES:
        slug = slugify(name)
        category = session.query(Category).filter(Category.slug == slug).first()
        if not category:
            category = Category(name=name, slug=slug, description=description)
            session.add(category)
            session.flush()
        categories[name] = category

    created = 0
    for name, sku, cat, price, original, stock, sizes, colors, age_group, featured in PRODUCTS:
        if session.query(Product.id).filter(Product.sku == sku).first():
            continue
        session.add(Product(
            name=name,
            sku=sku,
            description=f"{name} from our {cat.lower()} collection.",
            price=Decimal(price),
            original_price=Decimal(original) if original else None,
            stock=stock,
            category_id=categories[cat].id,
            sizes=sizes,
            colors=colors,
            age_group=age_group,
            is_featured=featured,
            image_url=f"https://picsum.photos/seed/{sku.lower()}/600/600",
            reference_images=[],
        ))
        created += 1
    print(f"Inserted {created} products.")


def populate_database():
    """Main execution function to populate database."""
    init_db()
    session = SessionLocal()
    try:
        seed_admin(session)
        seed_catalog(session)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    populate_database()
