import os

import click
from flask import Flask, jsonify, request, g
from sqlalchemy import text
from werkzeug.exceptions import HTTPException

from cropmate.extensions import db, migrate, cors
from cropmate.models import User, Role
from cropmate.integrations.storage.factory import storage_health
from cropmate.segments.segment_crops import crops_bp
from cropmate.segments.segment_orders import orders_bp
from cropmate.segments.segment_deliveries import deliveries_bp
from cropmate.segments.segment_delivery_requests import delivery_requests_bp
from cropmate.segments.segment_commissions import commissions_bp
from cropmate.services.errors import CropMateError
from cropmate.utils.jwt_utils import create_access_token
from cropmate.utils.observability import get_request_id, init_logging, init_sentry, install_request_observers


def _env_int(name: str, default: int, *, minimum: int = 1, maximum: int = 100000) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        value = int(raw) if raw else int(default)
    except ValueError:
        value = int(default)
    return max(minimum, min(value, maximum))


def _trace(payload: dict) -> dict:
    rid = (get_request_id() or "").strip()
    if rid:
        payload["trace_id"] = rid
    return payload


def create_app():
    app = Flask(__name__)
    init_logging(app)
    init_sentry(app)

    env = (os.getenv("CROPMATE_ENV", "dev") or "dev").strip().lower()
    is_prod = env in ("prod", "production")

    # Production safety checks
    if is_prod:
        secret = (os.getenv("SECRET_KEY") or "").strip()
        if not secret or len(secret) < 16:
            raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")
        if not (os.getenv("DATABASE_URL") or "").strip() and not (os.getenv("SQLALCHEMY_DATABASE_URI") or "").strip():
            raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["TESTING"] = env == "test"

    database_url = os.getenv("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL")
    if not database_url:
        instance_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "instance"))
        os.makedirs(instance_dir, exist_ok=True)
        database_url = "sqlite:///" + os.path.join(instance_dir, "cropmate.db").replace(os.sep, "/")
    # Heroku-style URLs still use the legacy scheme.
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    app.config["SQLALCHEMY_DATABASE_URI"] = database_url

    engine_options = {}
    if not database_url.startswith("sqlite"):
        engine_options = {
            "pool_pre_ping": True,
            "pool_reset_on_return": "rollback",
            "pool_recycle": _env_int("DB_POOL_RECYCLE_SECONDS", 1800, minimum=60, maximum=86400),
            "pool_size": _env_int("DB_POOL_SIZE", 10, minimum=1, maximum=200),
            "max_overflow": _env_int("DB_MAX_OVERFLOW", 20, minimum=0, maximum=500),
            "pool_timeout": _env_int("DB_POOL_TIMEOUT_SECONDS", 30, minimum=1, maximum=300),
        }
        app.logger.info(
            "db_pooling_enabled pool_size=%s max_overflow=%s pool_timeout=%s pool_recycle=%s",
            engine_options["pool_size"],
            engine_options["max_overflow"],
            engine_options["pool_timeout"],
            engine_options["pool_recycle"],
        )
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options

    cors_origins = (os.getenv("CORS_ORIGINS") or "").strip()
    origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
    if not origins and not is_prod:
        origins = ["*"]
    cors.init_app(app, resources={r"/api/*": {"origins": origins}})

    db.init_app(app)
    migrate.init_app(app, db)
    install_request_observers(app)

    # Production schema is owned by the migrations; local databases are created on boot.
    if not is_prod:
        with app.app_context():
            db.create_all()

    @app.errorhandler(CropMateError)
    def _api_domain_error(error: CropMateError):
        app.logger.info("request_rejected path=%s error=%s message=%s", request.path, error.code, error.message)
        return jsonify(_trace(error.to_dict())), int(error.status)

    @app.errorhandler(HTTPException)
    def _api_http_exception(error: HTTPException):
        if not request.path.startswith("/api/"):
            return error
        payload = {
            "ok": False,
            "error": error.name,
            "message": error.description or error.name,
            "status": int(error.code or 500),
        }
        return jsonify(_trace(payload)), int(error.code or 500)

    @app.errorhandler(Exception)
    def _api_unhandled_exception(error: Exception):
        app.logger.exception("unhandled_exception path=%s", request.path)
        payload = {
            "ok": False,
            "error": "InternalServerError",
            "message": "Internal server error",
            "status": 500,
        }
        return jsonify(_trace(payload)), 500

    app.register_blueprint(crops_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(deliveries_bp)
    app.register_blueprint(delivery_requests_bp)
    app.register_blueprint(commissions_bp)

    @app.get("/api/health")
    def health():
        db_state = "ok"
        db_error = None
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            db_state = "fail"
            msg = str(e)
            if msg:
                db_error = (msg[:300] + "...") if len(msg) > 300 else msg
        payload = {
            "ok": True,
            "service": "cropmate-backend",
            "env": env,
            "db": db_state,
            "storage": storage_health(),
        }
        if db_error:
            payload["db_error"] = db_error
        return jsonify(payload)

    @app.get("/")
    def root():
        return jsonify({
            "ok": True,
            "service": "cropmate-backend",
            "env": env,
        })

    @app.before_request
    def _reset_auth_context():
        g.pop("_cropmate_user", None)

    @app.teardown_request
    def _cleanup_db_session(exc):
        try:
            if exc is not None:
                db.session.rollback()
        finally:
            db.session.remove()

    @app.cli.command("create-user")
    @click.option("--email", "email", required=True, help="Login email")
    @click.option("--role", "role", required=True, type=click.Choice(Role.ALL, case_sensitive=False))
    @click.option("--name", "name", default="", help="Display name")
    @click.option("--password", "password", required=True, help="Initial password")
    def create_user(email: str, role: str, name: str, password: str):
        email = (email or "").strip().lower()
        if User.query.filter_by(email=email).first():
            raise click.ClickException("A user with that email already exists.")
        u = User(name=(name or email.split("@")[0]).strip(), email=email, role=role.upper())
        u.set_password(password)
        db.session.add(u)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise click.ClickException("Failed to create user.")
        click.echo(f"user_created id={u.id} email={u.email} role={u.role}")
        if not is_prod:
            click.echo(create_access_token(u.id, role=u.role))

    return app
