from flask import request, redirect, url_for, abort, g
from flask_login import current_user
from functools import wraps
from app.extensions import db
from app.models import User, UserRole
import logging

logger = logging.getLogger(__name__)


def current_role():
    """Role of the logged-in user, read from the users table.

    The session only carries the identity; a role revoked mid-session
    takes effect on the very next request.
    """
    if not current_user.is_authenticated:
        return None
    return db.session.query(User.role).filter(
        User.id == current_user.id).scalar()


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(403)

        role = current_role()
        if role != UserRole.ADMIN:
            logger.warning(
                "User %s attempted admin path %s, current role: %s",
                current_user.id,
                request.path,
                getattr(role, 'value', role),
            )
            abort(403)

        g.is_admin = True
        return f(*args, **kwargs)
    return decorated_function


def customer_only(f):
    """Account pages belong to shoppers; admins go to the back-office."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user.is_authenticated and current_role() == UserRole.ADMIN:
            return redirect(url_for('admin.dashboard'))
        return f(*args, **kwargs)
    return decorated_function
