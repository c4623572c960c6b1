from flask import Blueprint, render_template, request, redirect, url_for
from flask_login import login_required, current_user
from app.extensions import db
from app.exceptions import ValidationError
from app.middleware import customer_only
from app.services import order_service
from app.utils import collect_uploads, save_upload
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('account', __name__)


def _back_to_account(error=None):
    if error:
        return redirect(url_for('account.profile', error=error))
    return redirect(url_for('account.profile'))


@bp.route('/account', methods=['GET'])
@login_required
@customer_only
def profile():
    return render_template(
        'account/profile.html',
        user=current_user,
        addresses=order_service.user_addresses(current_user.id),
        error=request.args.get('error'),
    )


@bp.route('/account', methods=['POST'])
@login_required
@customer_only
def update_profile():
    name = (request.form.get('name') or '').strip()
    phone = (request.form.get('phone') or '').strip()
    gender = (request.form.get('gender') or '').strip()
    dob = (request.form.get('dob') or '').strip()

    if phone and not order_service.is_valid_phone(phone):
        return _back_to_account(
            'Số điện thoại phải bắt đầu bằng 0 và gồm 10 chữ số.')

    current_user.name = name or None
    current_user.phone = order_service.clean_phone(phone) if phone else None
    current_user.gender = gender or None
    current_user.dob = dob or None
    db.session.commit()
    return redirect(url_for('public.index'))


@bp.route('/account/password', methods=['GET'])
@login_required
@customer_only
def password_form():
    return render_template(
        'auth/change_password.html',
        success=bool(request.args.get('success')),
        error=request.args.get('error'),
    )


@bp.route('/account/password', methods=['POST'])
@login_required
@customer_only
def change_password():
    current_pw = request.form.get('currentPassword', '')
    new_pw = request.form.get('newPassword', '')
    confirm_pw = request.form.get('confirmPassword', '')

    def fail(message):
        return redirect(url_for('account.password_form', error=message))

    if not current_pw or not new_pw or not confirm_pw:
        return fail('Vui lòng điền đầy đủ.')
    if new_pw != confirm_pw:
        return fail('Mật khẩu mới không khớp.')
    if len(new_pw) < 6:
        return fail('Mật khẩu phải có ít nhất 6 ký tự.')
    if not current_user.check_password(current_pw):
        return fail('Mật khẩu hiện tại không đúng.')

    current_user.set_password(new_pw)
    db.session.commit()
    logger.info("Password changed for user %s", current_user.id)
    return redirect(url_for('account.password_form', success=1))


@bp.route('/account/avatar', methods=['POST'])
@login_required
@customer_only
def upload_avatar():
    uploads = collect_uploads(request.files, 'avatar')
    if uploads:
        current_user.avatar = save_upload(uploads[0])
        db.session.commit()
    return _back_to_account()


@bp.route('/account/addresses', methods=['POST'])
@login_required
def add_address():
    info = order_service.shipping_info_from(request.form)
    try:
        order_service.add_address(current_user.id, info)
    except ValidationError as e:
        return _back_to_account(e.message)
    return _back_to_account()


@bp.route('/account/addresses/<int:address_id>/delete', methods=['POST'])
@login_required
def delete_address(address_id):
    order_service.delete_address(current_user.id, address_id)
    return _back_to_account()


@bp.route('/account/addresses/<int:address_id>/set-default', methods=['POST'])
@login_required
def set_default_address(address_id):
    order_service.set_default_address(current_user.id, address_id)
    return _back_to_account()
