import asyncio
import hmac
import logging
import os
import threading

from flask import Flask, abort, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from nutribot.config import ADMIN_TOKEN, LOG_LEVEL, TOKEN
from nutribot.services.admin import AdminService
from nutribot.services.storage import Storage, UserNotFoundError

logger = logging.getLogger(__name__)


def create_app(storage=None, admin_token=None) -> Flask:
    """Admin JSON API over the bot's storage."""
    app = Flask(__name__)
    service = AdminService(storage or Storage())
    token = admin_token if admin_token is not None else ADMIN_TOKEN

    @app.before_request
    def check_token():
        if not request.path.startswith("/admin"):
            return None
        given = request.args.get("token", "")
        if not token or not hmac.compare_digest(given, token):
            abort(401)
        return None

    @app.errorhandler(UserNotFoundError)
    def user_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        logger.exception("Admin request failed: %s", e)
        return jsonify({"error": "database error"}), 500

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "token_set": bool(TOKEN)})

    @app.route("/admin/api/dashboard")
    def dashboard():
        return jsonify(service.get_dashboard_data())

    @app.route("/admin/api/users/<user_id>/meals")
    def user_meals(user_id):
        limit = request.args.get("limit", 50, type=int)
        return jsonify(service.get_user_meals(user_id, limit))

    @app.route("/admin/api/users/<user_id>/conversations")
    def user_conversations(user_id):
        limit = request.args.get("limit", 100, type=int)
        return jsonify(service.get_user_conversations(user_id, limit))

    @app.route("/admin/api/users/<user_id>/toggle", methods=["POST"])
    def toggle_user(user_id):
        return jsonify({"user_id": user_id, "is_active": service.toggle_user_active(user_id)})

    @app.route("/admin/api/users/<user_id>/reset", methods=["POST"])
    def reset_user(user_id):
        service.reset_user(user_id)
        return jsonify({"user_id": user_id, "status": "reset"})

    return app


def run_bot():
    """Run the polling bot in this thread (signals are only handled on the main thread)."""
    from main import main

    try:
        asyncio.run(main(handle_signals=False))
    except Exception:
        logging.exception("Bot thread crashed")


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    from nutribot import database, models  # noqa: F401

    database.Base.metadata.create_all(bind=database.engine)

    # Start the bot alongside the admin API (single-process deploys)
    if TOKEN:
        logging.info("Starting bot thread...")
        threading.Thread(target=run_bot, daemon=False).start()
    else:
        logging.warning("BOT_TOKEN is not set, the bot will not be started")

    create_app().run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=False)
