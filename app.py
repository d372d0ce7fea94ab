import logging
import math
import os
from functools import wraps
from itertools import zip_longest
from urllib.parse import urlsplit

from flask import Flask, render_template, request, session, redirect, url_for, flash, current_app

from init_data import init_sample_data, USERS_FILE
from utils.auth import SimpleAuth
from utils.db import SimpleDB
from utils.inventory import (
    ShopState, ORDER_STATUSES, stock_status, search_products, add_product, update_product,
    delete_product, create_order, draft_total, transition,
)
from utils.validators import CATEGORIES, ValidationError, validate_product_form

app = Flask(__name__)
app.config.from_mapping(
    SECRET_KEY=os.environ.get('TECHSTORE_SECRET_KEY', 'techstore-admin-secret-key'),
    DATA_DIR=os.environ.get('TECHSTORE_DATA_DIR', os.path.join(app.root_path, 'data')),
    PAGE_SIZE=int(os.environ.get('TECHSTORE_PAGE_SIZE', 5)),  # SỐ DÒNG MỖI TRANG CỦA BẢNG
    LOW_STOCK_THRESHOLD=int(os.environ.get('TECHSTORE_LOW_STOCK_THRESHOLD', 10)),  # <= NGƯỠNG NÀY LÀ "SẮP HẾT"
    BCRYPT_ROUNDS=int(os.environ.get('TECHSTORE_BCRYPT_ROUNDS', 12)),
)

auth = SimpleAuth()

PRODUCT_SORTS = ('name', 'price', 'quantity')
ORDER_SORTS = ('totalAmount', 'createdAt')


# Helper functions
def format_currency(amount):
    # 25000000 -> "25.000.000 ₫" (phân cách hàng nghìn kiểu vi-VN)
    return f"{amount:,.0f}".replace(',', '.') + ' ₫'


app.jinja_env.filters['currency'] = format_currency


@app.template_filter('stock_status')
def stock_status_filter(quantity):
    return stock_status(quantity, current_app.config['LOW_STOCK_THRESHOLD'])


def get_db():
    # Mỗi request đọc từ thư mục dữ liệu đang cấu hình; tạo dữ liệu mẫu cho file còn thiếu
    db = SimpleDB(current_app.config['DATA_DIR'])
    init_sample_data(db, bcrypt_rounds=current_app.config['BCRYPT_ROUNDS'])
    return db


def get_state():
    return ShopState.load(get_db())


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if 'user_id' not in session:
            flash('Vui lòng đăng nhập!', 'error')
            return redirect(url_for('login', next=request.path))
        if session.get('role') != 'admin':
            flash('Bạn không có quyền truy cập trang này!', 'error')
            return redirect(url_for('login'))
        return view(*args, **kwargs)
    return wrapped


def is_internal_url(url):
    # Chỉ chấp nhận đường dẫn trong cùng trang quản trị (không sang host khác)
    if not url or url.startswith('//') or '\\' in url:
        return False
    parts = urlsplit(url)
    if not parts.netloc:
        return url.startswith('/')
    return parts.scheme in ('http', 'https') and parts.netloc == request.host


def sort_items(items, sort, allowed):
    # "price" tăng dần, "-price" giảm dần; khóa không hợp lệ thì giữ nguyên thứ tự
    key = sort.lstrip('-') if sort else ''
    if key not in allowed:
        return list(items)

    def sort_key(item):
        value = item.get(key)
        return value.casefold() if isinstance(value, str) else value

    return sorted(items, key=sort_key, reverse=sort.startswith('-'))


def paginate(items, page, per_page):
    pages = max(1, math.ceil(len(items) / per_page))
    page = min(max(page or 1, 1), pages)
    start = (page - 1) * per_page
    return items[start:start + per_page], page, pages


# ==================== AUTHENTICATION ====================

@app.route('/')
def home():
    return redirect(url_for('admin_products'))


@app.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        email = request.form.get('email', '')
        password = request.form.get('password', '')

        users = get_db().load(USERS_FILE)
        user = auth.authenticate(users, email, password)

        if not user:
            app.logger.info('Đăng nhập thất bại: %s', email)
            flash('Email hoặc mật khẩu không đúng!', 'error')
            return render_template('login.html', email=email)
        if not auth.is_admin(user):
            flash('Bạn không có quyền truy cập trang này!', 'error')
            return render_template('login.html', email=email)

        session['user_id'] = user['id']
        session['user_name'] = user['name']
        session['role'] = user['role']
        app.logger.info('Quản trị viên %s đăng nhập', user['email'])
        flash('Đăng nhập thành công!', 'success')

        next_url = request.args.get('next', '')
        if next_url and is_internal_url(next_url):
            return redirect(next_url)
        return redirect(url_for('admin_products'))

    return render_template('login.html', email='')


@app.route('/logout')
def logout():
    session.clear()
    flash('Đã đăng xuất!', 'info')
    return redirect(url_for('login'))


# ==================== ADMIN: SẢN PHẨM ====================

@app.route('/admin')
@admin_required
def admin_dashboard():
    return redirect(url_for('admin_products'))


@app.route('/admin/products')
@admin_required
def admin_products():
    search = request.args.get('search', '')
    sort = request.args.get('sort', '')
    page = request.args.get('page', 1, type=int)

    state = get_state()
    products = sort_items(search_products(state.products, search), sort, PRODUCT_SORTS)
    page_items, page, pages = paginate(products, page, current_app.config['PAGE_SIZE'])

    return render_template('admin/products.html',
                           products=page_items,
                           total=len(products),
                           offset=(page - 1) * current_app.config['PAGE_SIZE'],
                           page=page,
                           pages=pages,
                           search_query=search,
                           sort=sort)


@app.route('/admin/products/add', methods=['GET', 'POST'])
@admin_required
def admin_add_product():
    if request.method == 'POST':
        try:
            values = validate_product_form(request.form)
        except ValidationError as e:
            return render_template('admin/product_form.html', product=None, values=request.form,
                                   errors=e.errors, categories=CATEGORIES)

        add_product(get_state(), values)
        flash('Thêm sản phẩm thành công', 'success')
        return redirect(url_for('admin_products'))

    return render_template('admin/product_form.html', product=None, values={}, errors={},
                           categories=CATEGORIES)


@app.route('/admin/products/<int:product_id>/edit', methods=['GET', 'POST'])
@admin_required
def admin_edit_product(product_id):
    state = get_state()
    product = state.find_product(product_id)

    if not product:
        flash('Sản phẩm không tồn tại!', 'error')
        return redirect(url_for('admin_products'))

    if request.method == 'POST':
        try:
            values = validate_product_form(request.form)
        except ValidationError as e:
            return render_template('admin/product_form.html', product=product, values=request.form,
                                   errors=e.errors, categories=CATEGORIES)

        update_product(state, product_id, values)
        flash('Cập nhật sản phẩm thành công', 'success')
        return redirect(url_for('admin_products'))

    return render_template('admin/product_form.html', product=product, values=product, errors={},
                           categories=CATEGORIES)


@app.route('/admin/products/<int:product_id>/delete', methods=['POST'])
@admin_required
def admin_delete_product(product_id):
    try:
        delete_product(get_state(), product_id)
    except ValueError as e:
        flash(f'{e}!', 'error')
        return redirect(url_for('admin_products'))

    flash('Xóa sản phẩm thành công', 'success')
    return redirect(url_for('admin_products'))


# ==================== ADMIN: ĐƠN HÀNG ====================

def read_order_lines(form):
    # Các dòng sản phẩm của form gửi lên dưới dạng hai danh sách song song
    product_ids = form.getlist('productId')
    quantities = form.getlist('quantity')
    # Danh sách ngắn hơn được bù '' để validator báo thiếu trường
    return [{'productId': pid, 'quantity': qty}
            for pid, qty in zip_longest(product_ids, quantities, fillvalue='')]


def render_order_form(state, values, lines, errors):
    return render_template('admin/order_form.html',
                           products=state.products,
                           values=values,
                           lines=lines,
                           errors=errors,
                           total=draft_total(state, lines))


@app.route('/admin/orders')
@admin_required
def admin_orders():
    sort = request.args.get('sort', '')
    page = request.args.get('page', 1, type=int)

    state = get_state()
    orders = sort_items(state.orders, sort, ORDER_SORTS)
    page_items, page, pages = paginate(orders, page, current_app.config['PAGE_SIZE'])

    return render_template('admin/orders.html',
                           orders=page_items,
                           total=len(orders),
                           page=page,
                           pages=pages,
                           sort=sort,
                           statuses=ORDER_STATUSES)


@app.route('/admin/orders/new', methods=['GET', 'POST'])
@admin_required
def admin_new_order():
    state = get_state()

    if request.method == 'GET':
        return render_order_form(state, {}, [{'productId': '', 'quantity': ''}], {})

    lines = read_order_lines(request.form)
    action = request.form.get('action', 'submit')

    # Thêm / xóa dòng chỉ vẽ lại form nháp, chưa tạo đơn
    if action == 'add_line':
        lines.append({'productId': '', 'quantity': ''})
        return render_order_form(state, request.form, lines, {})
    if action.startswith('remove_line:'):
        index = action.split(':', 1)[1]
        index = int(index) if index.isdigit() else -1
        if 0 <= index < len(lines):
            lines.pop(index)
        return render_order_form(state, request.form, lines, {})

    try:
        order = create_order(state,
                             request.form.get('customerName'),
                             request.form.get('phone'),
                             request.form.get('address'),
                             lines)
    except ValidationError as e:
        return render_order_form(state, request.form, lines or [{'productId': '', 'quantity': ''}], e.errors)

    flash('Tạo đơn hàng thành công', 'success')
    app.logger.info('Admin %s tạo đơn %s', session.get('user_name'), order['id'])
    return redirect(url_for('admin_orders'))


@app.route('/admin/orders/<order_id>')
@admin_required
def admin_order_detail(order_id):
    order = get_state().find_order(order_id)
    if not order:
        flash('Đơn hàng không tồn tại!', 'error')
        return redirect(url_for('admin_orders'))
    return render_template('admin/order_detail.html', order=order)


@app.route('/admin/orders/<order_id>/status', methods=['POST'])
@admin_required
def admin_update_order(order_id):
    new_status = request.form.get('status', '')
    try:
        changed = transition(get_state(), order_id, new_status)
    except ValueError as e:
        flash(f'{e}!', 'error')
        return redirect(url_for('admin_orders'))

    if changed:
        flash('Cập nhật trạng thái đơn hàng thành công', 'success')
    # Quay lại trang danh sách đang xem (giữ sort / page) nếu là trang nội bộ
    if is_internal_url(request.referrer):
        return redirect(request.referrer)
    return redirect(url_for('admin_orders'))


# ==================== CLI ====================

@app.cli.command('init-data')
def init_data_command():
    """Tạo dữ liệu mẫu (sản phẩm, đơn hàng rỗng, tài khoản admin)."""
    files = init_sample_data(SimpleDB(app.config['DATA_DIR']), bcrypt_rounds=app.config['BCRYPT_ROUNDS'])
    print('✅ Đã khởi tạo dữ liệu mẫu:', ', '.join(files) if files else '(không có file mới)')


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    init_sample_data(SimpleDB(app.config['DATA_DIR']), bcrypt_rounds=app.config['BCRYPT_ROUNDS'])
    print("=" * 50)
    print("✅ ỨNG DỤNG ĐÃ SẴN SÀNG!")
    print("   Quản trị: admin@example.com / admin123")
    print(f"   Dữ liệu:  {app.config['DATA_DIR']}")
    print("=" * 50)
    print("🌐 TRUY CẬP: http://localhost:5000/admin/products")
    print("=" * 50)
    app.run(debug=True)
