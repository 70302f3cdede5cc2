import pytest

from shop import admin, crud, schemas, webhooks
from shop.errors import DataAccessFailure, NotFound
from shop.seed import seed


def test_create_order_and_items(db_session):
    user = crud.create_user(db_session, schemas.RegisterIn(email="a@b.c", username="ab", password="pw"))
    order = crud.create_order(db_session, user.id, schemas.OrderCreate(
        items=[schemas.OrderItemIn(product_id=5, quantity=3, price=2.5)],
        shipping_address="Somewhere",
        total_amount=50,
    ))
    assert order["status"] == "pending"
    assert order["subtotal"] == 7.5
    assert order["tax"] == 4.0

    stored = crud.find_order(db_session, order["id"])
    assert stored["items"][0]["productId"] == 5


def test_order_for_missing_user_is_accepted(db_session):
    # no referential checks on raw inserts
    order = crud.create_order(db_session, 9999, schemas.OrderCreate(shipping_address="x", total_amount=1))
    assert order["userId"] == 9999


def test_get_user_missing(db_session):
    with pytest.raises(NotFound):
        crud.get_user(db_session, 404)


def test_validate_user_wraps_store_errors(db_session):
    with pytest.raises(DataAccessFailure, match="^Database error"):
        crud.validate_user(db_session, "'", "x")


def test_update_product_error_prefix(db_session):
    with pytest.raises(DataAccessFailure, match="^Failed to update product"):
        crud.update_product(db_session, "1", {"no_such_column": 1})


def test_user_fields_skip_empty_strings():
    fields = crud.user_fields(schemas.UserUpdate(email="", username="neo", is_admin=False))
    assert fields == {"username": "neo", "isAdmin": False}


def test_admin_update_requires_fields(db_session):
    with pytest.raises(DataAccessFailure, match="No updates provided"):
        admin.update_user(db_session, 1, {})


def test_admin_delete_keeps_going_after_failure(db_session):
    seed(db_session)
    db_session.connection().exec_driver_sql(
        "CREATE TRIGGER block_item_delete BEFORE DELETE ON order_items "
        "BEGIN SELECT RAISE(ABORT, 'items locked'); END"
    )
    db_session.commit()

    with pytest.raises(DataAccessFailure, match="items locked"):
        admin.delete_user(db_session, 2)
    assert crud.find_user(db_session, 2) is None
    assert crud.orders_for_user(db_session, 2) == []


def test_webhook_user_update_requires_updates(db_session):
    with pytest.raises(ValueError, match="No updates provided"):
        webhooks.update_user(db_session, 1, None)


def test_system_command_is_never_run():
    result = webhooks.system_command("rm -rf /")
    assert result["executed"] is False


def test_replay_rejects_error_entries(db_session):
    receiver = webhooks.WebhookReceiver()
    entry = receiver.record({"type": "payment_error", "data": {}})
    with pytest.raises(ValueError, match="Cannot replay"):
        receiver.replay(db_session, entry["id"])
