"""Create the admin account or restore its role and password."""
from sqlalchemy import func
from app import create_app
from app.extensions import db
from app.models import User, UserRole

app = create_app()

with app.app_context():
    email = app.config["ADMIN_EMAIL"].strip().lower()
    user = User.query.filter(func.lower(User.email) == email).first()
    if user:
        user.role = UserRole.ADMIN
        user.set_password(app.config["ADMIN_PASSWORD"])
        print(f"Updated existing user to admin: {user.id} {user.email}")
    else:
        user = User(name="Admin", email=email, role=UserRole.ADMIN)
        user.set_password(app.config["ADMIN_PASSWORD"])
        db.session.add(user)
        db.session.flush()
        print(f"Inserted admin user with id: {user.id}")
    db.session.commit()
