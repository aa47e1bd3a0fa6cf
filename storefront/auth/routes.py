from flask import request, current_app
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from . import bp
from ..model import User
from ..extensions import db
from ..utils.api import ok, err
from ..utils.decorators import _current_user, login_required
from ..cart.context import end_shopping_session

MIN_PASSWORD_LENGTH = 6

# --- helper: access token carrying the role claim ---
def _issue_token(user: User) -> str:
    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


@bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    phone = (data.get("phone") or "").strip() or None

    if not name or not email or not password:
        return err("Name, email and password are required", 400)
    if len(password) < MIN_PASSWORD_LENGTH:
        return err(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", 400)
    if User.query.filter_by(email=email).first():
        return err("Email already registered", 409)

    # self-registration always creates customers; admins come from `flask create-admin`
    user = User(
        name=name,
        email=email,
        password_hash=generate_password_hash(password),
        phone=phone,
        role="customer",
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("account created id=%s", user.id)

    return ok("Account created successfully", {"user": user.as_dict(), "token": _issue_token(user)}, 201)

@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return err("Email and password are required", 400)

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return err("Invalid email or password", 401)
    if not user.active:
        return err("Inactive user", 401)

    # the guest cart is not merged: the server cart becomes authoritative
    return ok("You've logged in successfully", {"user": user.as_dict(), "token": _issue_token(user)})

@bp.get("/me")
@login_required
def me():
    return ok("profile", {"user": _current_user().as_dict()})

@bp.post("/logout")
def logout():
    end_shopping_session()
    return ok("Logged out")
