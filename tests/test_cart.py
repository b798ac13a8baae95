import pytest

from savora.client.cart import CART_STORAGE_KEY, Cart, CartItem, LocalStorage, compute_totals

TOMATOES = {"_id": "tom", "name": "Tomatoes", "unit": "kg", "pricePerUnit": 40}
SAFFRON = {"_id": "saf", "name": "Saffron", "unit": "grams", "pricePerUnit": 100}


def test_adding_same_item_merges_into_one_line():
    cart = Cart()
    cart.add_item(TOMATOES, 2)
    cart.add_item(TOMATOES, 3)

    assert len(cart.items) == 1
    assert cart.get_item("tom").quantity == 5


def test_add_item_rejects_non_positive_quantity():
    cart = Cart()
    with pytest.raises(ValueError):
        cart.add_item(TOMATOES, 0)
    assert cart.items == []


def test_lines_keep_insertion_order():
    cart = Cart()
    cart.add_item(SAFFRON)
    cart.add_item(TOMATOES)
    cart.add_item(SAFFRON)

    assert [i.id for i in cart.items] == ["saf", "tom"]


def test_decrement_to_zero_removes_line():
    cart = Cart()
    cart.add_item(TOMATOES, 2)

    cart.decrement("tom")
    assert cart.get_item("tom").quantity == 1

    cart.decrement("tom")
    assert not cart.contains("tom")

    cart.decrement("tom")
    assert cart.items == []


def test_increment_and_set_quantity():
    cart = Cart()
    cart.add_item(TOMATOES)
    cart.increment("tom")
    assert cart.get_item("tom").quantity == 2

    cart.set_quantity("tom", 7)
    assert cart.get_item("tom").quantity == 7

    cart.set_quantity("tom", 0)
    assert cart.items == []


def test_operations_on_missing_item_are_noops():
    cart = Cart()
    cart.add_item(TOMATOES)

    cart.increment("nope")
    cart.set_quantity("nope", 4)
    cart.remove_item("nope")

    assert [(i.id, i.quantity) for i in cart.items] == [("tom", 1)]


def test_totals():
    cart = Cart()
    cart.add_item(TOMATOES, 2)
    cart.add_item(SAFFRON, 1)

    totals = cart.totals()

    assert totals.subtotal == pytest.approx(180)
    assert totals.tax == pytest.approx(32.4)
    assert totals.total == pytest.approx(212.4)
    assert totals.item_count == 3


def test_compute_totals_empty_and_plain_dicts():
    assert compute_totals([]) == (0, 0, 0, 0)

    totals = compute_totals([{"pricePerUnit": 10, "quantity": 3}], tax_rate=0.1)
    assert totals.total == pytest.approx(33)


def test_clear():
    cart = Cart()
    cart.add_item(TOMATOES)
    cart.clear()

    assert cart.items == []
    assert cart.totals().item_count == 0


def test_cart_persists_every_change(tmp_path):
    storage = LocalStorage(tmp_path / "storage.json")
    cart = Cart(storage)
    cart.add_item(TOMATOES, 2)
    cart.add_item(CartItem(**SAFFRON))

    restored = Cart(LocalStorage(tmp_path / "storage.json"))
    assert [(i.id, i.quantity) for i in restored.items] == [("tom", 2), ("saf", 1)]

    restored.remove_item("tom")
    assert [line["_id"] for line in storage.get(CART_STORAGE_KEY)] == ["saf"]


def test_price_is_a_snapshot():
    cart = Cart()
    cart.add_item(TOMATOES)
    cart.add_item({**TOMATOES, "pricePerUnit": 55, "name": "Roma Tomatoes"})

    line = cart.get_item("tom")
    assert line.pricePerUnit == 40
    assert line.name == "Tomatoes"
    assert line.quantity == 2


def test_unreadable_storage_starts_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    assert Cart(LocalStorage(path)).items == []


def test_invalid_saved_lines_are_dropped(tmp_path):
    storage = LocalStorage(tmp_path / "storage.json")
    storage.set(CART_STORAGE_KEY, [
        {**TOMATOES, "quantity": 0},
        {**SAFFRON, "quantity": 2},
        {"name": "no id"},
    ])

    cart = Cart(storage)

    assert [(i.id, i.quantity) for i in cart.items] == [("saf", 2)]
