"""
Application exceptions raised by the service layer.

Routes either catch them locally (to render a form error or redirect) or
let them bubble to the handler registered in ``app.errors``.
"""


class StoreError(Exception):
    status_code = 500
    message = 'Đã xảy ra lỗi.'

    def __init__(self, message=None, **payload):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.payload = payload


class ValidationError(StoreError):
    status_code = 400
    message = 'Dữ liệu không hợp lệ.'


class OrderStateError(StoreError):
    status_code = 400
    message = 'Không thể chỉnh sửa đơn này'


class EmptyCartError(StoreError):
    status_code = 400
    message = 'Giỏ hàng trống.'


class PaymentError(StoreError):
    status_code = 502
    message = 'Thanh toán thất bại.'
