"""Quản lý sản phẩm, đơn hàng và tồn kho.

``ShopState`` giữ hai danh sách (sản phẩm, đơn hàng) và được truyền tường minh
vào từng thao tác. Sau mỗi thay đổi thành công, thao tác gọi ``state.save()``
để ghi đè toàn bộ hai file JSON.

Tồn kho chỉ thay đổi khi chuyển trạng thái đơn hàng:

* sang ``Hoàn thành``: trừ kho theo từng dòng sản phẩm;
* từ ``Hoàn thành`` sang ``Đã hủy``: cộng trả lại kho.

Tạo đơn hàng không trừ kho, chỉ kiểm tra số lượng với tồn kho hiện tại.
"""
import logging
import time
from datetime import date

from utils.db import SimpleDB
from utils.validators import validate_order_form, parse_int

logger = logging.getLogger(__name__)

PRODUCTS_FILE = 'products.json'
ORDERS_FILE = 'orders.json'

PENDING = 'Chờ xử lý'
SHIPPING = 'Đang giao'
COMPLETED = 'Hoàn thành'
CANCELLED = 'Đã hủy'

ORDER_STATUSES = [PENDING, SHIPPING, COMPLETED, CANCELLED]


class ShopState:
    def __init__(self, products, orders, db=None):
        self.products = products
        self.orders = orders
        self.db = db

    @classmethod
    def load(cls, db):
        return cls(db.load(PRODUCTS_FILE), db.load(ORDERS_FILE), db)

    def save(self):
        if self.db is None:
            return
        self.db.save(PRODUCTS_FILE, self.products)
        self.db.save(ORDERS_FILE, self.orders)

    def find_product(self, product_id):
        return next((p for p in self.products if p['id'] == product_id), None)

    def find_order(self, order_id):
        return next((o for o in self.orders if o['id'] == order_id), None)

    def get_product(self, product_id):
        product = self.find_product(product_id)
        if product is None:
            raise ValueError('Sản phẩm không tồn tại')
        return product

    def get_order(self, order_id):
        order = self.find_order(order_id)
        if order is None:
            raise ValueError('Đơn hàng không tồn tại')
        return order


# ==================== SẢN PHẨM ====================

def stock_status(quantity, low_threshold=10):
    """Nhãn trạng thái kho và màu tag tương ứng."""
    if quantity == 0:
        return 'Hết hàng', 'red'
    if quantity <= low_threshold:
        return 'Sắp hết', 'orange'
    return 'Còn hàng', 'green'


def search_products(products, text):
    text = (text or '').strip().lower()
    if not text:
        return list(products)
    return [p for p in products if text in p['name'].lower()]


def add_product(state, values):
    product = {
        'id': SimpleDB.get_next_id(state.products),
        'name': values['name'],
        'category': values['category'],
        'price': values['price'],
        'quantity': values['quantity'],
    }
    state.products.append(product)
    state.save()
    logger.info('Thêm sản phẩm %s (%s)', product['id'], product['name'])
    return product


def update_product(state, product_id, values):
    product = state.get_product(product_id)
    product.update({k: values[k] for k in ('name', 'category', 'price', 'quantity') if k in values})
    state.save()
    logger.info('Cập nhật sản phẩm %s', product_id)
    return product


def delete_product(state, product_id):
    # Đơn hàng giữ nguyên bản chụp tên / giá / số lượng của sản phẩm
    product = state.get_product(product_id)
    state.products = [p for p in state.products if p['id'] != product_id]
    state.save()
    logger.info('Xóa sản phẩm %s (%s)', product_id, product['name'])
    return product


# ==================== ĐƠN HÀNG ====================

def new_order_id(state):
    # DH + mốc thời gian (ms); tăng dần nếu trùng mã đã có
    stamp = int(time.time() * 1000)
    while state.find_order(f'DH{stamp}') is not None:
        stamp += 1
    return f'DH{stamp}'


def draft_total(state, line_items):
    """Tổng tiền tạm tính theo giá hiện tại; bỏ qua dòng chưa nhập đủ."""
    total = 0
    for line in line_items or []:
        product_id = parse_int(line.get('productId'))
        quantity = parse_int(line.get('quantity'))
        if not product_id or not quantity:
            continue
        product = state.find_product(product_id)
        if product is None:
            continue
        total += product['price'] * quantity
    return total


def create_order(state, customer_name, phone, address, line_items, today=None):
    customer_name, phone, address, lines = validate_order_form(
        customer_name, phone, address, line_items, state.products)

    order_products = []
    for line in lines:
        product = state.get_product(line['productId'])
        order_products.append({
            'productId': product['id'],
            'productName': product['name'],
            'quantity': line['quantity'],
            'price': product['price'],
        })

    # Tổng tiền lấy theo giá hiện tại trong danh mục, không cộng từ bản chụp giá của từng dòng
    total_amount = draft_total(state, lines)

    order = {
        'id': new_order_id(state),
        'customerName': customer_name,
        'phone': phone,
        'address': address,
        'products': order_products,
        'totalAmount': total_amount,
        'status': PENDING,
        'createdAt': (today or date.today()).isoformat(),
    }
    state.orders.append(order)
    state.save()
    logger.info('Tạo đơn hàng %s: %d sản phẩm, tổng %s', order['id'], len(order_products), total_amount)
    return order


def _adjust_stock(state, order, sign):
    for line in order['products']:
        product = state.find_product(line['productId'])
        if product is None:
            logger.debug('Đơn %s: sản phẩm %s không còn, bỏ qua', order['id'], line['productId'])
            continue
        product['quantity'] += sign * line['quantity']
        if product['quantity'] < 0:
            logger.warning('Tồn kho âm: sản phẩm %s còn %s', product['id'], product['quantity'])


def transition(state, order_id, new_status):
    """Đổi trạng thái đơn hàng và cập nhật tồn kho nếu cần.

    Trả về False khi trạng thái mới trùng trạng thái cũ (không làm gì).
    """
    if new_status not in ORDER_STATUSES:
        raise ValueError('Trạng thái không hợp lệ')
    order = state.get_order(order_id)
    old_status = order['status']
    if new_status == old_status:
        return False

    if new_status == COMPLETED:
        _adjust_stock(state, order, -1)
    if old_status == COMPLETED and new_status == CANCELLED:
        _adjust_stock(state, order, +1)

    order['status'] = new_status
    state.save()
    logger.info('Đơn hàng %s: %s -> %s', order_id, old_status, new_status)
    return True
