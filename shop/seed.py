"""
Demo data loader
- Creates the tables when missing
- Inserts the demo accounts, catalogue and two sample orders
- Safe to run more than once (users are matched on email)

Usage:
  python -m shop.seed --db path/to/shop.db
"""
import argparse
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from . import models
from .db import Base

logger = logging.getLogger(__name__)

USERS = [
    {"email": "admin@shop.com", "username": "admin", "password": "password123",
     "first_name": "Admin", "last_name": "User", "is_admin": True},
    {"email": "john@example.com", "username": "john_doe", "password": "123456",
     "first_name": "John", "last_name": "Doe", "address": "123 Main St, Anytown, USA", "phone": "555-0101"},
    {"email": "jane@example.com", "username": "jane_smith", "password": "qwerty",
     "first_name": "Jane", "last_name": "Smith", "address": "456 Oak Ave, Somewhere, USA", "phone": "555-0102"},
    {"email": "user3@example.com", "username": "user3", "password": "password", "first_name": "User", "last_name": "Three"},
    {"email": "user4@example.com", "username": "user4", "password": "12345", "first_name": "User", "last_name": "Four"},
    {"email": "user5@example.com", "username": "user5", "password": "admin", "first_name": "User", "last_name": "Five"},
    {"email": "user6@example.com", "username": "user6", "password": "letmein", "first_name": "User", "last_name": "Six"},
    {"email": "user7@example.com", "username": "user7", "password": "welcome", "first_name": "User", "last_name": "Seven"},
]

PRODUCTS = [
    {"name": "Laptop Pro", "description": "High-performance laptop for professionals",
     "price": 1299.99, "stock": 50, "category": "Electronics", "image_url": "/images/laptop.jpg"},
    {"name": "Smartphone X", "description": "Latest smartphone with advanced features",
     "price": 899.99, "stock": 100, "category": "Electronics", "image_url": "/images/phone.jpg"},
    {"name": "Gaming Mouse", "description": "Precision gaming mouse with RGB lighting",
     "price": 79.99, "stock": 200, "category": "Accessories", "image_url": "/images/mouse.jpg"},
    {"name": "Mechanical Keyboard", "description": "Mechanical keyboard with tactile switches",
     "price": 149.99, "stock": 75, "category": "Accessories", "image_url": "/images/keyboard.jpg"},
    {"name": "Wireless Headphones", "description": "Noise-cancelling wireless headphones",
     "price": 299.99, "stock": 60, "category": "Audio", "image_url": "/images/headphones.jpg"},
    {"name": "Coffee Maker", "description": "Programmable coffee maker with timer",
     "price": 89.99, "stock": 30, "category": "Home", "image_url": "/images/coffee.jpg"},
]

# (buyer email, status, total, shipping address, [(product name, quantity)])
ORDERS = [
    ("john@example.com", "paid", 1379.98, "123 Main St, Anytown, USA", [("Laptop Pro", 1), ("Gaming Mouse", 1)]),
    ("jane@example.com", "pending", 349.98, "456 Oak Ave, Somewhere, USA", [("Wireless Headphones", 1)]),
]


def seed(db: Session) -> dict:
    """Insert whatever demo rows are missing and report how many were added."""
    added = {"users": 0, "products": 0, "orders": 0}

    users = {}
    for data in USERS:
        user = db.query(models.User).filter(models.User.email == data["email"]).first()
        if not user:
            user = models.User(**data)
            db.add(user)
            added["users"] += 1
        users[data["email"]] = user

    products = {}
    for data in PRODUCTS:
        product = db.query(models.Product).filter(models.Product.name == data["name"]).first()
        if not product:
            product = models.Product(**data)
            db.add(product)
            added["products"] += 1
        products[data["name"]] = product
    db.flush()

    for email, status, total, address, lines in ORDERS:
        buyer = users[email]
        if db.query(models.Order).filter(models.Order.user_id == buyer.id).first():
            continue
        order = models.Order(user_id=buyer.id, status=status, total_amount=total, shipping_address=address)
        order.items = [
            models.OrderItem(product_id=products[name].id, quantity=qty, price=products[name].price)
            for name, qty in lines
        ]
        db.add(order)
        added["orders"] += 1

    db.commit()
    logger.info("Seed complete: %s", added)
    return added


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", required=True, help="Path to SQLite database file")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    engine = create_engine(f"sqlite:///{args.db}", future=True)
    Base.metadata.create_all(bind=engine)
    with sessionmaker(bind=engine, future=True)() as db:
        seed(db)
    engine.dispose()


if __name__ == "__main__":
    main()
