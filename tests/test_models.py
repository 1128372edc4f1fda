"""Model mapping tests."""
from marketdesk import db
from marketdesk.models import CartItem, Order, OrderItem, Product, User


def test_collection_relationships_start_as_empty_lists(app):
    assert Order(user_id=1).items == []
    assert Product(name="Mug", price_cents=100).order_items == []
    user = User(username="u", email="u@example.com")
    assert user.cart_items == []
    assert user.orders == []
    assert user.scheduled_posts == []


def test_order_holds_several_items(app, user, make_product):
    mug, tote = make_product(name="Mug"), make_product(name="Tote", price_cents=1800)
    order = Order(user_id=user.id)
    order.items.append(OrderItem(product_id=mug.id, product_name="Mug", unit_price_cents=1400, quantity=2))
    order.items.append(OrderItem(product_id=tote.id, product_name="Tote", unit_price_cents=1800, quantity=1))
    order.compute_total()
    db.session.add(order)
    db.session.commit()

    assert order.total_cents == 4600
    assert len(db.session.get(Order, order.id).items) == 2
    assert [i.order_id for i in mug.order_items] == [order.id]


def test_user_cart_items_is_a_list(app, user, make_product):
    for name in ("A", "B"):
        db.session.add(CartItem(user_id=user.id, product_id=make_product(name=name).id, quantity=1))
    db.session.commit()
    assert len(user.cart_items) == 2
