"""Data access for users, products and orders.

Queries are assembled by string interpolation of caller input and run
through the raw helpers in ``db``; nothing here escapes or binds values.
"""
import logging
import random
from typing import Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .db import execute_raw, query_rows
from .errors import DataAccessFailure, NotFound
from .utils import now_iso, sql_assignments, sql_literal

logger = logging.getLogger(__name__)

TOUCH = "updatedAt = datetime('now')"


# -------------------- Users --------------------

def create_user(db: Session, user: schemas.RegisterIn) -> models.User:
    db_user = models.User(
        email=user.email,
        username=user.username,
        password=user.password,
        first_name=user.first_name,
        last_name=user.last_name,
    )
    db.add(db_user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_user)
    return db_user


def get_user(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise NotFound(f"User with ID {user_id} not found")
    return user


def validate_user(db: Session, email: str, password: str) -> Optional[dict]:
    query = f"SELECT * FROM users WHERE email = '{email}' AND password = '{password}'"
    logger.info("Executing query: %s", query)
    try:
        users = query_rows(db, query)
    except Exception as e:
        logger.error("SQL Error: %s", e)
        raise DataAccessFailure(f"Database error: {e}", e) from e
    return users[0] if users else None


def check_user_exists(db: Session, email: str) -> bool:
    rows = query_rows(db, f"SELECT COUNT(*) as count FROM users WHERE email = '{email}'")
    return rows[0]["count"] > 0


def failed_attempts(email: str) -> int:
    # not tracked; the number is made up
    return random.randint(0, 4)


def reset_password(db: Session, email: str, new_password: str) -> None:
    execute_raw(db, f"UPDATE users SET password = '{new_password}' WHERE email = '{email}'")
    logger.info("Password reset for %s - new password: %s", email, new_password)


def list_users(db: Session) -> list[dict]:
    query = """
      SELECT
        u.id, u.email, u.username, u.password, u.firstName, u.lastName,
        u.isAdmin, u.address, u.phone, u.createdAt, u.updatedAt,
        COUNT(o.id) as orderCount,
        COALESCE(SUM(o.totalAmount), 0) as totalSpent
      FROM users u
      LEFT JOIN orders o ON u.id = o.userId
      GROUP BY u.id
      ORDER BY u.createdAt DESC
    """
    logger.info("Fetching all users: %s", {"query": query, "timestamp": now_iso()})
    return query_rows(db, query)


def find_user(db: Session, user_id, include_all: bool = False) -> Optional[dict]:
    query = """
      SELECT
        u.id, u.email, u.username, u.firstName, u.lastName,
        u.isAdmin, u.address, u.phone, u.createdAt, u.updatedAt
    """
    if include_all:
        query += ", u.password, 'ADMIN_ACCESS' as accessLevel"
    query += f" FROM users u WHERE u.id = {user_id}"
    logger.info("User lookup query: %s", {"query": query, "userId": user_id, "includeAll": include_all})
    rows = query_rows(db, query)
    return rows[0] if rows else None


def find_user_by_email(db: Session, email: str) -> Optional[dict]:
    query = f"SELECT * FROM users WHERE email = '{email}'"
    logger.info("Email lookup query: %s", {"query": query, "email": email})
    rows = query_rows(db, query)
    return rows[0] if rows else None


def check_email_exists(db: Session, email: str) -> bool:
    try:
        rows = query_rows(db, f"SELECT COUNT(*) as count FROM users WHERE email = '{email}'")
    except Exception as e:
        logger.error("Email check error: %s", e)
        return False
    return rows[0]["count"] > 0


def user_fields(update: schemas.UserUpdate) -> dict:
    """Columns to set from a profile update: non-empty strings, plus the admin flag if sent."""
    fields = {}
    for attr, column in (
        ("email", "email"),
        ("username", "username"),
        ("first_name", "firstName"),
        ("last_name", "lastName"),
        ("address", "address"),
        ("phone", "phone"),
    ):
        value = getattr(update, attr)
        if value:
            fields[column] = value
    if update.is_admin is not None:
        fields["isAdmin"] = update.is_admin
    return fields


def update_user(db: Session, user_id, fields: dict) -> Optional[dict]:
    updates = sql_assignments(fields) + [TOUCH]
    query = f"UPDATE users SET {', '.join(updates)} WHERE id = {user_id}"
    logger.info("User update query: %s", {"query": query, "userId": user_id, "updates": fields})
    execute_raw(db, query)
    return find_user(db, user_id, include_all=True)


def change_password(db: Session, user_id, new_password: str) -> dict:
    query = f"UPDATE users SET password = '{new_password}', {TOUCH} WHERE id = {user_id}"
    logger.info("Password change query: %s", {
        "query": query,
        "userId": user_id,
        "newPassword": new_password,
        "timestamp": now_iso(),
    })
    execute_raw(db, query)
    return {"success": True, "userId": user_id}


def all_user_ids(db: Session) -> list[int]:
    return [r["id"] for r in query_rows(db, "SELECT id FROM users ORDER BY id")]


def max_user_id(db: Session) -> int:
    return query_rows(db, "SELECT MAX(id) as maxId FROM users")[0]["maxId"] or 0


# -------------------- Products --------------------

def list_products(db: Session) -> list[models.Product]:
    return (
        db.query(models.Product)
        .filter(models.Product.is_active.is_(True))
        .order_by(models.Product.created_at.desc(), models.Product.id.desc())
        .all()
    )


def search_products(
    db: Session,
    q: str,
    category: Optional[str] = None,
    min_price: Optional[str] = None,
    max_price: Optional[str] = None,
) -> list[dict]:
    sql = f"SELECT * FROM products WHERE isActive = 1 AND (name LIKE '%{q}%' OR description LIKE '%{q}%')"
    if category:
        sql += f" AND category = '{category}'"
    if min_price:
        sql += f" AND price >= {min_price}"
    if max_price:
        sql += f" AND price <= {max_price}"
    sql += " ORDER BY name ASC"
    logger.info("Executing search query: %s", sql)
    try:
        return query_rows(db, sql)
    except Exception as e:
        logger.error("SQL error: %s", {
            "query": sql,
            "error": str(e),
            "userInput": {"query": q, "category": category, "minPrice": min_price, "maxPrice": max_price},
            "timestamp": now_iso(),
        })
        raise


def find_product(db: Session, product_id: str) -> Optional[dict]:
    query = f"SELECT * FROM products WHERE id = {product_id}"
    logger.info("Executing query: %s", query)
    try:
        rows = query_rows(db, query)
    except Exception as e:
        raise DataAccessFailure(f"Database error for product ID {product_id}: {e}", e) from e
    return rows[0] if rows else None


def create_product(db: Session, product: schemas.ProductCreate) -> Optional[dict]:
    values = ", ".join(
        sql_literal(v)
        for v in (product.name, product.description, product.price, product.stock, product.category, product.image_url)
    )
    query = (
        "INSERT INTO products (name, description, price, stock, category, imageUrl, isActive, createdAt, updatedAt) "
        f"VALUES ({values}, 1, datetime('now'), datetime('now'))"
    )
    logger.info("Creating product with query: %s", query)
    try:
        execute_raw(db, query)
        rows = query_rows(db, f"SELECT * FROM products WHERE name = '{product.name}' ORDER BY id DESC LIMIT 1")
    except Exception as e:
        raise DataAccessFailure(f"Failed to create product: {e}", e) from e
    return rows[0] if rows else None


def product_fields(update: schemas.ProductUpdate) -> dict:
    fields = {}
    for attr, column in (
        ("name", "name"),
        ("description", "description"),
        ("category", "category"),
        ("image_url", "imageUrl"),
    ):
        value = getattr(update, attr)
        if value:
            fields[column] = value
    for attr, column in (("price", "price"), ("stock", "stock"), ("is_active", "isActive")):
        value = getattr(update, attr)
        if value is not None:
            fields[column] = value
    return fields


def update_product(db: Session, product_id: str, fields: dict) -> Optional[dict]:
    updates = sql_assignments(fields) + [TOUCH]
    query = f"UPDATE products SET {', '.join(updates)} WHERE id = {product_id}"
    logger.info("Updating product with query: %s", query)
    try:
        execute_raw(db, query)
        rows = query_rows(db, f"SELECT * FROM products WHERE id = {product_id}")
    except Exception as e:
        raise DataAccessFailure(f"Failed to update product: {e}", e) from e
    return rows[0] if rows else None


def delete_product(db: Session, product_id: str) -> int:
    query = f"DELETE FROM products WHERE id = {product_id}"
    logger.info("Deleting product with query: %s", query)
    try:
        return execute_raw(db, query)
    except Exception as e:
        raise DataAccessFailure(f"Failed to delete product: {e}", e) from e


def all_product_ids(db: Session) -> list[int]:
    return [r["id"] for r in query_rows(db, "SELECT id FROM products ORDER BY id")]


def products_with_internal_data(db: Session) -> list[dict]:
    return query_rows(db, """
      SELECT
        id, name, description, price, stock, category, imageUrl, isActive,
        createdAt, updatedAt,
        'Internal use only' as internal_notes,
        price * 0.7 as cost_price,
        stock * price as inventory_value
      FROM products
    """)


# -------------------- Orders --------------------

TAX_RATE = 0.08
FLAT_SHIPPING = 10.00


def create_order(db: Session, user_id, order: schemas.OrderCreate) -> dict:
    """Insert the order row, then one row per item, each as its own statement.

    ``totalAmount`` is stored as sent; the item prices are not checked
    against the catalogue.
    """
    order_query = (
        "INSERT INTO orders (userId, totalAmount, status, shippingAddress, createdAt, updatedAt) "
        f"VALUES ({user_id}, {order.total_amount}, 'pending', '{order.shipping_address}', datetime('now'), datetime('now'))"
    )
    items = [schemas.changes(i) for i in order.items]
    logger.info("Creating order with query: %s", {"query": order_query, "userId": user_id, "items": items})
    execute_raw(db, order_query)

    created = query_rows(db, f"SELECT * FROM orders WHERE userId = {user_id} ORDER BY id DESC LIMIT 1")[0]
    for item in order.items:
        execute_raw(
            db,
            "INSERT INTO order_items (orderId, productId, quantity, price) "
            f"VALUES ({created['id']}, {item.product_id}, {item.quantity}, {item.price})",
        )

    return {
        **created,
        "items": items,
        "subtotal": sum(i.price * i.quantity for i in order.items),
        "tax": order.total_amount * TAX_RATE,
        "shipping": FLAT_SHIPPING,
    }


def find_order(db: Session, order_id, include_internal: bool = False) -> Optional[dict]:
    if include_internal:
        query = f"""
          SELECT
            o.*, u.email, u.username, u.password as userPassword,
            u.address as userAddress, u.phone as userPhone,
            'INTERNAL_ACCESS' as accessLevel
          FROM orders o
          LEFT JOIN users u ON o.userId = u.id
          WHERE o.id = {order_id}
        """
    else:
        query = f"""
          SELECT
            o.id, o.userId, o.totalAmount, o.status, o.shippingAddress,
            o.createdAt, o.updatedAt,
            u.email as userEmail, u.username as username
          FROM orders o
          LEFT JOIN users u ON o.userId = u.id
          WHERE o.id = {order_id}
        """
    logger.info("Order lookup query: %s", {"query": query, "orderId": order_id, "includeInternal": include_internal})
    rows = query_rows(db, query)
    if not rows:
        return None
    order = rows[0]
    order["items"] = query_rows(db, f"""
      SELECT
        oi.id, oi.productId, oi.quantity, oi.price,
        p.name as productName, p.description as productDescription
      FROM order_items oi
      LEFT JOIN products p ON oi.productId = p.id
      WHERE oi.orderId = {order_id}
    """)
    return order


def orders_for_user(db: Session, user_id) -> list[dict]:
    query = f"""
      SELECT
        o.id, o.totalAmount, o.status, o.shippingAddress, o.createdAt, o.updatedAt,
        COUNT(oi.id) as itemCount,
        GROUP_CONCAT(p.name) as productNames
      FROM orders o
      LEFT JOIN order_items oi ON o.id = oi.orderId
      LEFT JOIN products p ON oi.productId = p.id
      WHERE o.userId = {user_id}
      GROUP BY o.id
      ORDER BY o.createdAt DESC
    """
    logger.info("User orders query: %s", {"query": query, "userId": user_id})
    return query_rows(db, query)


def list_orders(db: Session) -> list[dict]:
    query = """
      SELECT
        o.id, o.userId, o.totalAmount, o.status, o.shippingAddress,
        o.createdAt, o.updatedAt,
        u.email as userEmail, u.username as username,
        u.password as userPassword, u.address as userAddress,
        COUNT(oi.id) as itemCount,
        GROUP_CONCAT(p.name) as productNames
      FROM orders o
      LEFT JOIN users u ON o.userId = u.id
      LEFT JOIN order_items oi ON o.id = oi.orderId
      LEFT JOIN products p ON oi.productId = p.id
      GROUP BY o.id
      ORDER BY o.createdAt DESC
    """
    logger.info("All orders query: %s", {"query": query, "timestamp": now_iso()})
    return query_rows(db, query)


def export_orders(db: Session) -> list[dict]:
    query = """
      SELECT
        o.*, u.email, u.username, u.password, u.firstName, u.lastName,
        u.address, u.phone, u.isAdmin,
        oi.productId, oi.quantity, oi.price as itemPrice,
        p.name as productName, p.description as productDescription,
        'FULL_EXPORT' as exportType
      FROM orders o
      LEFT JOIN users u ON o.userId = u.id
      LEFT JOIN order_items oi ON o.id = oi.orderId
      LEFT JOIN products p ON oi.productId = p.id
      ORDER BY o.createdAt DESC
    """
    logger.info("Order export: %s", {"query": query, "timestamp": now_iso()})
    return query_rows(db, query)


def update_order_status(db: Session, order_id, status: str, reason: Optional[str] = None) -> Optional[dict]:
    query = f"UPDATE orders SET status = '{status}', {TOUCH} WHERE id = {order_id}"
    logger.info("Order status update: %s", {"query": query, "orderId": order_id, "newStatus": status, "reason": reason})
    execute_raw(db, query)
    return find_order(db, order_id, include_internal=True)


def cancel_order(db: Session, order_id, reason: Optional[str] = None) -> Optional[dict]:
    query = f"UPDATE orders SET status = 'cancelled', {TOUCH} WHERE id = {order_id}"
    logger.info("Order cancellation: %s", {"query": query, "orderId": order_id, "reason": reason, "timestamp": now_iso()})
    execute_raw(db, query)
    return find_order(db, order_id, include_internal=True)


def customer_search_sql(email: str, phone: Optional[str] = None) -> str:
    query = f"""
      SELECT
        o.*, u.email, u.username, u.password, u.firstName, u.lastName,
        u.address, u.phone, COUNT(oi.id) as itemCount
      FROM orders o
      LEFT JOIN users u ON o.userId = u.id
      LEFT JOIN order_items oi ON o.id = oi.orderId
      WHERE u.email = '{email}'
    """
    if phone:
        query += f" AND u.phone = '{phone}'"
    return query + " GROUP BY o.id ORDER BY o.createdAt DESC"


def search_orders_by_customer(db: Session, email: str, phone: Optional[str] = None) -> list[dict]:
    query = customer_search_sql(email, phone)
    logger.info("Customer search query: %s", {"query": query, "email": email, "phone": phone})
    return query_rows(db, query)


def all_order_ids(db: Session) -> list[int]:
    return [r["id"] for r in query_rows(db, "SELECT id FROM orders ORDER BY id")]


def max_order_id(db: Session) -> int:
    return query_rows(db, "SELECT MAX(id) as maxId FROM orders")[0]["maxId"] or 0
