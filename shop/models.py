from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from .db import Base

# Column names match the wire format (camelCase) because raw queries
# return them unchanged.


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    username = Column(String, nullable=False)
    # stored as typed by the user
    password = Column(String, nullable=False)
    first_name = Column("firstName", String, nullable=False, default="")
    last_name = Column("lastName", String, nullable=False, default="")
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    is_admin = Column("isAdmin", Boolean, nullable=False, default=False)
    created_at = Column("createdAt", DateTime, nullable=False, server_default=func.now())
    updated_at = Column("updatedAt", DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    orders = relationship("Order", back_populates="user")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=True)
    image_url = Column("imageUrl", String, nullable=True)
    is_active = Column("isActive", Boolean, nullable=False, default=True)
    created_at = Column("createdAt", DateTime, nullable=False, server_default=func.now())
    updated_at = Column("updatedAt", DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column("userId", Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column("totalAmount", Float, nullable=False)
    # free-form: pending/paid/shipped/delivered/cancelled by convention only
    status = Column(String, nullable=False, default="pending")
    shipping_address = Column("shippingAddress", String, nullable=False)
    created_at = Column("createdAt", DateTime, nullable=False, server_default=func.now())
    updated_at = Column("updatedAt", DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column("orderId", Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column("productId", Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
