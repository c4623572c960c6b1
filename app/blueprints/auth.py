from flask import (
    Blueprint,
    request,
    render_template,
    redirect,
    url_for,
    session,
)
from flask_login import (
    login_user,
    logout_user,
    current_user,
)
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from app.extensions import db
from app.models import User, UserRole
from app.services import cart_service
from app.utils import get_session_cart, store_session_cart
import logging
import re

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__)

PASSWORD_POLICY_MSG = (
    'Mật khẩu phải có ít nhất 8 ký tự, chứa ít nhất 1 chữ hoa '
    'và 1 ký tự đặc biệt như @ ! ?'
)


def normalize_email(email):
    """Lowercased address, or an empty string when it holds a line break."""
    email = (email or '').strip().lower()
    if '\r' in email or '\n' in email:
        return ''
    return email


def password_policy_error(password):
    if (
        len(password) < 8
        or not re.search(r'[A-Z]', password)
        or not re.search(r'[@!?]', password)
    ):
        return PASSWORD_POLICY_MSG
    return None


def find_user_by_email(email):
    return User.query.filter(func.lower(User.email) == email).first()


@bp.route('/register', methods=['GET', 'POST'])
def register():
    if request.method == 'GET':
        return render_template('auth/register.html')

    name = (request.form.get('name') or '').strip()
    email = request.form.get('email', '')
    password = request.form.get('password', '')

    def fail(message):
        return render_template(
            'auth/register.html', error=message, name=name, email=email)

    if not email or not password:
        return fail('Vui lòng điền email và mật khẩu.')
    email = normalize_email(email)
    if not email:
        return fail('Email không hợp lệ.')
    if '@' not in email:
        return fail('Email không hợp lệ (thiếu @).')
    policy_error = password_policy_error(password)
    if policy_error:
        return fail(policy_error)

    user = User(name=name or None, email=email, role=UserRole.USER)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info("Registration with existing email %s", email)
        return fail('Email đã được sử dụng.')

    logger.info("User registered: id=%s email=%s", user.id, user.email)
    return redirect(url_for('auth.login'))


@bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'GET':
        return render_template('auth/login.html')

    email = request.form.get('email', '')
    password = request.form.get('password', '')

    def fail(message):
        return render_template('auth/login.html', error=message, email=email)

    if not email or not password:
        return fail('Vui lòng nhập email và mật khẩu.')
    email = normalize_email(email)
    if not email:
        return fail('Email không hợp lệ.')
    if '@' not in email:
        return fail('Email không hợp lệ (thiếu @).')

    user = find_user_by_email(email)
    if not user:
        return fail('Email chưa được đăng ký.')
    if not user.check_password(password):
        return fail('Mật khẩu không đúng.')

    session_cart = get_session_cart()
    login_user(user)
    session.permanent = True

    if user.role == UserRole.ADMIN:
        logger.info("Admin logged in: %s", user.email)
        return redirect(url_for('admin.dashboard'))

    # Cart survives logout/login: persisted + anonymous session cart.
    merged = cart_service.merge(cart_service.load_cart(user.id), session_cart)
    cart_service.save_cart(user.id, merged)
    store_session_cart(merged)
    logger.info("User logged in: %s (cart lines=%d)", user.email, len(merged))
    return redirect(url_for('public.index'))


@bp.route('/logout', methods=['POST'])
def logout():
    if current_user.is_authenticated:
        cart_service.save_cart(current_user.id, get_session_cart())
        logger.info("User logged out: %s", current_user.id)
        logout_user()
    session.clear()
    return redirect(url_for('public.index'))
