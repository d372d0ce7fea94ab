from utils.auth import SimpleAuth
from utils.db import SimpleDB
from utils.inventory import PRODUCTS_FILE, ORDERS_FILE

USERS_FILE = 'users.json'

INITIAL_PRODUCTS = [
    {'id': 1, 'name': 'Laptop Dell XPS 13', 'category': 'Laptop', 'price': 25000000, 'quantity': 15},
    {'id': 2, 'name': 'iPhone 15 Pro Max', 'category': 'Điện thoại', 'price': 30000000, 'quantity': 8},
    {'id': 3, 'name': 'Samsung Galaxy S24', 'category': 'Điện thoại', 'price': 22000000, 'quantity': 20},
    {'id': 4, 'name': 'iPad Air M2', 'category': 'Máy tính bảng', 'price': 18000000, 'quantity': 5},
    {'id': 5, 'name': 'MacBook Air M3', 'category': 'Laptop', 'price': 28000000, 'quantity': 12},
    {'id': 6, 'name': 'AirPods Pro 2', 'category': 'Phụ kiện', 'price': 6000000, 'quantity': 0},
    {'id': 7, 'name': 'Samsung Galaxy Tab S9', 'category': 'Máy tính bảng', 'price': 15000000, 'quantity': 7},
    {'id': 8, 'name': 'Logitech MX Master 3', 'category': 'Phụ kiện', 'price': 2500000, 'quantity': 25},
]

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'admin123'


def init_sample_data(db=None, bcrypt_rounds=12):
    """Tạo dữ liệu mẫu cho các file còn thiếu; file đã có thì giữ nguyên.

    Trả về danh sách tên file vừa được tạo.
    """
    db = db or SimpleDB()
    created = []

    if not db.exists(PRODUCTS_FILE):
        db.save(PRODUCTS_FILE, [dict(p) for p in INITIAL_PRODUCTS])
        created.append(PRODUCTS_FILE)

    if not db.exists(ORDERS_FILE):
        db.save(ORDERS_FILE, [])
        created.append(ORDERS_FILE)

    if not db.exists(USERS_FILE):
        db.save(USERS_FILE, [{
            'id': 1,
            'name': 'Quản trị viên',
            'email': ADMIN_EMAIL,
            'password_hash': SimpleAuth.hash_password(ADMIN_PASSWORD, rounds=bcrypt_rounds),
            'role': 'admin',
        }])
        created.append(USERS_FILE)

    return created


if __name__ == '__main__':
    files = init_sample_data()
    print('✅ Đã khởi tạo dữ liệu mẫu:', ', '.join(files) if files else '(không có file mới)')
