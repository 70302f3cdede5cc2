"""Back-office queries: full user dumps, arbitrary updates, hard deletes."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from .db import execute_raw, query_rows
from .errors import DataAccessFailure
from .utils import age_in_days, now_iso, sql_assignments

logger = logging.getLogger(__name__)

DUMP_TABLES = ("users", "products", "orders", "order_items")


def list_users(db: Session) -> list[dict]:
    query = """
      SELECT
        id, email, username, password, firstName, lastName,
        isAdmin, address, phone, createdAt, updatedAt,
        'SENSITIVE_DATA_EXPOSED' as security_warning
      FROM users
      ORDER BY createdAt DESC
    """
    logger.info("Admin accessing all user data: %s", {"query": query, "timestamp": now_iso()})
    return query_rows(db, query)


def list_orders(db: Session, user_id: Optional[str] = None) -> list[dict]:
    query = """
      SELECT
        o.id, o.userId, o.totalAmount, o.status, o.shippingAddress,
        o.createdAt, o.updatedAt,
        u.email as userEmail, u.username as username,
        GROUP_CONCAT(p.name) as productNames
      FROM orders o
      LEFT JOIN users u ON o.userId = u.id
      LEFT JOIN order_items oi ON o.id = oi.orderId
      LEFT JOIN products p ON oi.productId = p.id
    """
    if user_id:
        query += f" WHERE o.userId = {user_id}"
    query += " GROUP BY o.id ORDER BY o.createdAt DESC"
    logger.info("Admin accessing orders with query: %s", query)
    return query_rows(db, query)


def get_user(db: Session, user_id) -> Optional[dict]:
    rows = query_rows(db, f"""
      SELECT
        u.*,
        COUNT(o.id) as totalOrders,
        COALESCE(SUM(o.totalAmount), 0) as totalSpent,
        'ADMIN_ACCESS' as accessedVia
      FROM users u
      LEFT JOIN orders o ON u.id = o.userId
      WHERE u.id = {user_id}
      GROUP BY u.id
    """)
    return rows[0] if rows else None


def update_user(db: Session, user_id, update_data: dict) -> Optional[dict]:
    """Apply every key of ``update_data`` as a column assignment."""
    if not update_data:
        raise DataAccessFailure("No updates provided")
    updates = sql_assignments(update_data) + ["updatedAt = datetime('now')"]
    query = f"UPDATE users SET {', '.join(updates)} WHERE id = {user_id}"
    logger.info("Admin updating user with query: %s", query)
    logger.info("Update data: %s", update_data)
    try:
        execute_raw(db, query)
        rows = query_rows(db, f"SELECT * FROM users WHERE id = {user_id}")
    except Exception as e:
        raise DataAccessFailure(f"Failed to update user: {e}", e) from e
    return rows[0] if rows else None


def delete_user(db: Session, user_id) -> None:
    """Remove a user's order items, orders and row in three separate statements.

    Each statement commits on its own and a rejected statement does not stop
    the ones after it; the first failure is raised once all three have run.
    """
    queries = [
        f"DELETE FROM order_items WHERE orderId IN (SELECT id FROM orders WHERE userId = {user_id})",
        f"DELETE FROM orders WHERE userId = {user_id}",
        f"DELETE FROM users WHERE id = {user_id}",
    ]
    logger.info("Permanently deleting user and all data: %s", {
        "userId": user_id,
        "queries": queries,
        "timestamp": now_iso(),
    })
    first_error = None
    for query in queries:
        try:
            execute_raw(db, query)
        except Exception as e:
            logger.error("Delete step failed: %s (%s)", query, e)
            if first_error is None:
                first_error = e
    if first_error is not None:
        raise DataAccessFailure(f"Failed to delete user: {first_error}", first_error) from first_error


def export_users(db: Session) -> list[dict]:
    query = """
      SELECT
        u.id, u.email, u.username, u.password, u.firstName, u.lastName,
        u.isAdmin, u.address, u.phone, u.createdAt, u.updatedAt,
        COUNT(o.id) as totalOrders,
        COALESCE(SUM(o.totalAmount), 0) as totalSpent,
        GROUP_CONCAT(o.id) as orderIds,
        'FULL_EXPORT' as exportType,
        datetime('now') as exportedAt
      FROM users u
      LEFT JOIN orders o ON u.id = o.userId
      GROUP BY u.id
      ORDER BY u.createdAt DESC
    """
    logger.info("Data export: %s", {"query": query, "timestamp": now_iso()})
    exported_at = now_iso()
    return [
        {
            **user,
            "internalNotes": f"User exported on {exported_at}",
            "systemGenerated": {
                "passwordStrength": "WEAK" if len(user["password"] or "") < 8 else "ACCEPTABLE",
                "riskLevel": "HIGH" if user["isAdmin"] else "MEDIUM",
                "accountAge": age_in_days(user["createdAt"]),
            },
        }
        for user in query_rows(db, query)
    ]


def promote_to_admin(db: Session, user_id) -> Optional[dict]:
    query = f"UPDATE users SET isAdmin = 1, updatedAt = datetime('now') WHERE id = {user_id}"
    logger.info("User promoted to admin: %s", {"userId": user_id, "query": query, "timestamp": now_iso()})
    try:
        execute_raw(db, query)
        rows = query_rows(db, f"SELECT * FROM users WHERE id = {user_id}")
    except Exception as e:
        raise DataAccessFailure(f"Failed to promote user to admin: {e}", e) from e
    user = rows[0] if rows else None
    if user:
        logger.info("Admin promotion successful: %s", {
            "userId": user["id"],
            "email": user["email"],
            "username": user["username"],
            "newAdminStatus": user["isAdmin"],
        })
    return user


def run_query(db: Session, query: str) -> list[dict]:
    logger.info("Admin executing raw query: %s", query)
    try:
        return query_rows(db, query)
    except Exception as e:
        logger.error("Admin raw query error: %s", e)
        raise


def database_dump(db: Session) -> dict:
    dump = {table: query_rows(db, f"SELECT * FROM {table}") for table in DUMP_TABLES}
    logger.info("Database dump accessed: %s", {"tables": list(DUMP_TABLES), "timestamp": now_iso()})
    return dump
