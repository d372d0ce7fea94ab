from datetime import date

import pytest

from utils.inventory import (
    ShopState, PENDING, SHIPPING, COMPLETED, CANCELLED, create_order, transition, draft_total,
    add_product, update_product, delete_product, search_products, stock_status,
)
from utils.validators import ValidationError


def make_order(state, lines, **kwargs):
    return create_order(
        state,
        kwargs.get('customer_name', 'Nguyễn Văn A'),
        kwargs.get('phone', '0912345678'),
        kwargs.get('address', '1 Lê Lợi, Hà Nội'),
        lines,
        today=kwargs.get('today', date(2024, 5, 1)),
    )


def stock(state, product_id):
    return state.find_product(product_id)['quantity']


class TestCreateOrder:
    def test_create_order_snapshots_lines(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 5}])

        assert order['id'].startswith('DH')
        assert order['status'] == PENDING
        assert order['createdAt'] == '2024-05-01'
        assert order['totalAmount'] == 5000
        assert order['products'] == [
            {'productId': 1, 'productName': 'P1', 'quantity': 5, 'price': 1000},
        ]

    def test_create_order_does_not_touch_stock(self, state):
        make_order(state, [{'productId': 1, 'quantity': 5}])
        assert stock(state, 1) == 20

    def test_create_order_accepts_form_strings(self, state):
        order = make_order(state, [{'productId': '1', 'quantity': '2'}, {'productId': '2', 'quantity': '3'}])
        assert order['totalAmount'] == 2 * 1000 + 3 * 500

    def test_create_order_persists(self, state, db):
        order = make_order(state, [{'productId': 1, 'quantity': 1}])
        reloaded = ShopState.load(db)
        assert [o['id'] for o in reloaded.orders] == [order['id']]

    def test_quantity_over_stock_rejected_without_mutation(self, state, db):
        with pytest.raises(ValidationError) as exc:
            make_order(state, [{'productId': 2, 'quantity': 5}])

        assert exc.value.errors == {'products.0.quantity': 'Số lượng vượt quá tồn kho'}
        assert state.orders == []
        assert ShopState.load(db).orders == []
        assert stock(state, 2) == 3

    def test_each_line_checked_independently(self, state):
        # 2 + 2 > 3 nhưng từng dòng đều <= tồn kho
        order = make_order(state, [{'productId': 2, 'quantity': 2}, {'productId': 2, 'quantity': 2}])
        assert len(order['products']) == 2

    def test_invalid_customer_fields(self, state):
        with pytest.raises(ValidationError) as exc:
            make_order(state, [{'productId': 1, 'quantity': 1}], customer_name=' ', phone='123', address='')

        assert set(exc.value.errors) == {'customerName', 'phone', 'address'}
        assert exc.value.errors['phone'] == 'SĐT không hợp lệ'

    @pytest.mark.parametrize('phone', ['0912345678', '09123456789'])
    def test_phone_ten_or_eleven_digits(self, state, phone):
        assert make_order(state, [{'productId': 1, 'quantity': 1}], phone=phone)['phone'] == phone

    def test_empty_order_rejected(self, state):
        with pytest.raises(ValidationError) as exc:
            make_order(state, [])
        assert 'products' in exc.value.errors

    def test_unknown_product_rejected(self, state):
        with pytest.raises(ValidationError) as exc:
            make_order(state, [{'productId': 99, 'quantity': 1}])
        assert exc.value.errors == {'products.0.productId': 'Sản phẩm không tồn tại'}

    def test_order_ids_are_unique(self, state):
        first = make_order(state, [{'productId': 1, 'quantity': 1}])
        second = make_order(state, [{'productId': 1, 'quantity': 1}])
        assert first['id'] != second['id']

    def test_deleting_product_keeps_order_snapshot(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 4}])
        delete_product(state, 1)

        assert state.find_product(1) is None
        assert state.get_order(order['id'])['products'] == [
            {'productId': 1, 'productName': 'P1', 'quantity': 4, 'price': 1000},
        ]
        assert state.get_order(order['id'])['totalAmount'] == 4000


class TestTransition:
    def test_complete_then_cancel_round_trip(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 5}])

        assert transition(state, order['id'], COMPLETED) is True
        assert stock(state, 1) == 15

        assert transition(state, order['id'], CANCELLED) is True
        assert stock(state, 1) == 20
        assert state.get_order(order['id'])['status'] == CANCELLED

    def test_repeat_same_status_is_noop(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 5}])
        transition(state, order['id'], COMPLETED)

        assert transition(state, order['id'], COMPLETED) is False
        assert stock(state, 1) == 15

    @pytest.mark.parametrize('path', [
        [SHIPPING],
        [SHIPPING, CANCELLED],
        [CANCELLED],
        [SHIPPING, PENDING],
    ])
    def test_other_transitions_leave_stock(self, state, path):
        order = make_order(state, [{'productId': 1, 'quantity': 5}, {'productId': 2, 'quantity': 1}])
        for status in path:
            transition(state, order['id'], status)

        assert stock(state, 1) == 20
        assert stock(state, 2) == 3

    def test_completed_to_shipping_keeps_debit(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 5}])
        transition(state, order['id'], COMPLETED)
        transition(state, order['id'], SHIPPING)
        assert stock(state, 1) == 15

    def test_recompleting_debits_again(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 5}])
        transition(state, order['id'], COMPLETED)
        transition(state, order['id'], SHIPPING)
        transition(state, order['id'], COMPLETED)
        assert stock(state, 1) == 10

    def test_completion_can_drive_stock_negative(self, state):
        order = make_order(state, [{'productId': 2, 'quantity': 3}])
        update_product(state, 2, {'quantity': 1})

        transition(state, order['id'], COMPLETED)
        assert stock(state, 2) == -2

    def test_missing_product_is_skipped(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 2}, {'productId': 2, 'quantity': 1}])
        delete_product(state, 1)

        transition(state, order['id'], COMPLETED)
        assert stock(state, 2) == 2
        assert state.get_order(order['id'])['status'] == COMPLETED

    def test_transition_persists_both_collections(self, state, db):
        order = make_order(state, [{'productId': 1, 'quantity': 5}])
        transition(state, order['id'], COMPLETED)

        reloaded = ShopState.load(db)
        assert reloaded.get_order(order['id'])['status'] == COMPLETED
        assert reloaded.find_product(1)['quantity'] == 15

    def test_unknown_status(self, state):
        order = make_order(state, [{'productId': 1, 'quantity': 1}])
        with pytest.raises(ValueError):
            transition(state, order['id'], 'Đã giao')

    def test_unknown_order(self, state):
        with pytest.raises(ValueError):
            transition(state, 'DH0', COMPLETED)


class TestCatalog:
    def test_add_product_assigns_next_id(self, state):
        product = add_product(state, {'name': 'Chuột', 'category': 'Phụ kiện', 'price': 200000, 'quantity': 4})
        assert product['id'] == 3
        assert state.find_product(3)['name'] == 'Chuột'

    def test_add_product_to_empty_catalog(self, db):
        shop = ShopState([], [], db)
        product = add_product(shop, {'name': 'Tai nghe', 'category': 'Phụ kiện', 'price': 100, 'quantity': 1})
        assert product['id'] == 1
        assert ShopState.load(db).products == [product]

    def test_update_unknown_product(self, state):
        with pytest.raises(ValueError):
            update_product(state, 42, {'name': 'x'})

    def test_search_is_case_insensitive(self, state):
        assert [p['id'] for p in search_products(state.products, 'p2')] == [2]
        assert len(search_products(state.products, '  ')) == 2

    @pytest.mark.parametrize('quantity, label', [
        (0, 'Hết hàng'),
        (-2, 'Sắp hết'),
        (10, 'Sắp hết'),
        (11, 'Còn hàng'),
    ])
    def test_stock_status(self, quantity, label):
        assert stock_status(quantity)[0] == label


def test_draft_total_skips_incomplete_lines(state):
    lines = [
        {'productId': '1', 'quantity': '2'},
        {'productId': '', 'quantity': '3'},
        {'productId': '99', 'quantity': '1'},
        {'productId': '2', 'quantity': ''},
    ]
    assert draft_total(state, lines) == 2000


def test_total_uses_live_prices(state):
    # Giá thay đổi trước khi gửi form thì tổng tiền theo giá mới
    update_product(state, 1, {'price': 1200})
    order = make_order(state, [{'productId': 1, 'quantity': 2}])
    assert order['totalAmount'] == 2400
    assert order['products'][0]['price'] == 1200


@pytest.mark.parametrize('raw, message', [
    ('', 'Vui lòng nhập số lượng'),
    ('2.5', 'Số lượng phải là số nguyên'),
    ('abc', 'Số lượng phải là số nguyên'),
    ('0', 'Số lượng phải lớn hơn 0'),
])
def test_line_quantity_messages(state, raw, message):
    with pytest.raises(ValidationError) as exc:
        make_order(state, [{'productId': '1', 'quantity': raw}])
    assert exc.value.errors == {'products.0.quantity': message}
    assert state.orders == []
