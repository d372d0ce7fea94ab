import bcrypt  # MÃ HÓA VÀ XÁC THỰC MẬT KHẨU QUẢN TRỊ VIÊN


class SimpleAuth:  # XÁC THỰC TÀI KHOẢN QUẢN TRỊ ĐỂ VÀO CÁC TRANG /admin
    @staticmethod
    def hash_password(password, rounds=12):  # MÃ HÓA MẬT KHẨU THÀNH CHUỖI BĂM BCRYPT
        return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('utf-8')

    @staticmethod
    def verify_password(password, hashed):  # SO SÁNH MẬT KHẨU NHẬP VÀO VỚI CHUỖI ĐÃ BĂM
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))

    @classmethod
    def authenticate(cls, users, email, password):
        # Trả về user khớp email + mật khẩu, None nếu sai
        user = next((u for u in users if u['email'] == email.strip().lower()), None)
        if not user or not cls.verify_password(password, user['password_hash']):
            return None
        return user

    @staticmethod
    def is_admin(user):
        return bool(user) and user.get('role') == 'admin'
