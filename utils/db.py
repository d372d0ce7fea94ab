import json  # ĐỌC / GHI DỮ LIỆU DẠNG JSON
import os


class SimpleDB:  # LƯU MỖI DANH SÁCH (products, orders, users) VÀO MỘT FILE JSON RIÊNG
    def __init__(self, data_dir='data'):
        self.data_dir = data_dir

    def _path(self, filename):
        return os.path.join(self.data_dir, filename)

    def exists(self, filename):  # FILE ĐÃ ĐƯỢC TẠO CHƯA
        return os.path.exists(self._path(filename))

    def load(self, filename):
        # Trả về [] nếu file chưa tồn tại
        path = self._path(filename)
        if not os.path.exists(path):
            return []
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def save(self, filename, data):
        # Ghi đè toàn bộ file: ghi ra file tạm rồi thay thế để không bao giờ để lại file ghi dở
        path = self._path(filename)
        os.makedirs(self.data_dir or '.', exist_ok=True)
        tmp = path + '.tmp'
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)

    @staticmethod
    def get_next_id(items):  # ID TỰ ĐỘNG TĂNG = ID LỚN NHẤT + 1
        return max((item['id'] for item in items), default=0) + 1
