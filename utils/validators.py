import math
import re

CATEGORIES = ['Laptop', 'Điện thoại', 'Máy tính bảng', 'Phụ kiện']  # DANH MỤC SẢN PHẨM HỢP LỆ

PHONE_PATTERN = re.compile(r'^\d{10,11}$')  # SĐT: 10-11 CHỮ SỐ


class ValidationError(ValueError):
    """Lỗi nhập liệu của form; ``errors`` ánh xạ tên trường -> thông báo."""

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__('; '.join(f'{k}: {v}' for k, v in self.errors.items()))


def _text(value):
    return str(value).strip() if value is not None else ''


def parse_number(value):
    # '25000000' -> 25000000, '1.5' -> 1.5, rỗng/không hợp lệ -> None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    raw = _text(value)
    if not raw:
        return None
    try:
        number = float(raw)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def parse_int(value):
    number = parse_number(value)
    if number is None or number != int(number):
        return None
    return int(number)


def validate_product_form(form):
    """Kiểm tra form thêm / sửa sản phẩm, trả về dict đã chuẩn hóa."""
    errors = {}

    name = _text(form.get('name'))
    if not name:
        errors['name'] = 'Vui lòng nhập tên sản phẩm'

    category = _text(form.get('category'))
    if not category:
        errors['category'] = 'Vui lòng chọn danh mục'
    elif category not in CATEGORIES:
        errors['category'] = 'Danh mục không hợp lệ'

    price = parse_number(form.get('price'))
    if price is None:
        errors['price'] = 'Vui lòng nhập giá'
    elif price <= 0:
        errors['price'] = 'Giá phải là số dương'

    quantity = parse_int(form.get('quantity'))
    if quantity is None:
        errors['quantity'] = 'Vui lòng nhập số lượng (số nguyên)'
    elif quantity < 0:
        errors['quantity'] = 'Số lượng không được âm'

    if errors:
        raise ValidationError(errors)
    return {'name': name, 'category': category, 'price': price, 'quantity': quantity}


def validate_order_form(customer_name, phone, address, line_items, products):
    """Kiểm tra form tạo đơn hàng.

    Mỗi dòng được so với tồn kho hiện tại của sản phẩm một cách độc lập.
    Trả về (customer_name, phone, address, [{'productId', 'quantity'}, ...]).
    """
    errors = {}

    customer_name = _text(customer_name)
    if not customer_name:
        errors['customerName'] = 'Vui lòng nhập tên khách hàng'

    phone = _text(phone)
    if not phone:
        errors['phone'] = 'Vui lòng nhập số điện thoại'
    elif not PHONE_PATTERN.match(phone):
        errors['phone'] = 'SĐT không hợp lệ'

    address = _text(address)
    if not address:
        errors['address'] = 'Vui lòng nhập địa chỉ'

    if not line_items:
        errors['products'] = 'Vui lòng thêm ít nhất một sản phẩm'

    by_id = {p['id']: p for p in products}
    cleaned = []
    for i, line in enumerate(line_items or []):
        product_id = parse_int(line.get('productId'))
        raw_quantity = line.get('quantity')
        quantity = parse_int(raw_quantity)

        if product_id is None:
            errors[f'products.{i}.productId'] = 'Vui lòng chọn sản phẩm'
        elif product_id not in by_id:
            errors[f'products.{i}.productId'] = 'Sản phẩm không tồn tại'

        if not _text(raw_quantity):
            errors[f'products.{i}.quantity'] = 'Vui lòng nhập số lượng'
        elif quantity is None:
            errors[f'products.{i}.quantity'] = 'Số lượng phải là số nguyên'
        elif quantity < 1:
            errors[f'products.{i}.quantity'] = 'Số lượng phải lớn hơn 0'
        elif product_id in by_id and quantity > by_id[product_id]['quantity']:
            errors[f'products.{i}.quantity'] = 'Số lượng vượt quá tồn kho'

        cleaned.append({'productId': product_id, 'quantity': quantity})

    if errors:
        raise ValidationError(errors)
    return customer_name, phone, address, cleaned
