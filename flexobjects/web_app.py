import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from flask import Flask, Response, abort, jsonify, request

from flexobjects.core.config import config as app_config
from flexobjects.core.flex import Flex
from flexobjects.core.models import User
from flexobjects.core.objects import FlexCollection
from flexobjects.core.objects.collection import parse_order
from flexobjects.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def _load_dotenv_next_to_project() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.is_file():
        load_dotenv(env_path, override=False)


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        return value


def create_app(flex: Flex | None = None) -> Flask:
    """Create the Flask app serving flex collections."""
    if flex is None:
        flex = Flex.from_config(app_config)

    app = Flask(__name__)
    app.extensions["flex"] = flex
    guest = User("guest", set(flex.config.guest_access))

    def visible_collection(flex_type: str) -> FlexCollection:
        directory = flex.get_directory(flex_type)
        if directory is None:
            abort(404)
        return directory.get_collection().is_authorized("read", "site", guest)

    @app.before_request
    def reset_debugger() -> None:
        # Timers and recovered exceptions belong to a single request
        flex.debugger.reset()

    @app.errorhandler(404)
    def not_found(_: Exception) -> tuple[Response, int]:
        return jsonify({"success": False, "error": "Not found"}), 404

    @app.errorhandler(400)
    def bad_request(error: Any) -> tuple[Response, int]:
        return jsonify({"success": False, "error": getattr(error, "description", "Bad request")}), 400

    @app.route("/")
    def index() -> Response:
        return jsonify(
            {
                "success": True,
                "directories": [
                    {"type": d.get_type(), "title": d.get_title()}
                    for d in flex.get_directories().values()
                ],
            }
        )

    @app.route("/flex/<flex_type>")
    def list_objects(flex_type: str) -> Response:
        collection = visible_collection(flex_type)

        search = request.args.get("search", "").strip()
        if search:
            collection = collection.search(search)

        try:
            order = parse_order(request.args.get("sort"))
            if order:
                collection = collection.sort(order)
            key_field = request.args.get("key_field")
            if key_field:
                collection = collection.with_key_field(key_field)
        except ValueError as e:
            abort(400, description=str(e))

        logger.info("Listing %d %s objects", len(collection), flex_type)
        return jsonify(
            {
                "success": True,
                "type": flex_type,
                "key_field": collection.get_key_field(),
                "count": len(collection),
                "keys": [str(k) for k in collection.get_keys()],
                "objects": {str(k): v for k, v in collection.to_dict().items()},
            }
        )

    @app.route("/flex/<flex_type>/render")
    @app.route("/flex/<flex_type>/render/<layout>")
    def render_collection(flex_type: str, layout: str = "default") -> Response:
        collection = visible_collection(flex_type)
        context = {k: _coerce(v) for k, v in request.args.items()}
        block = collection.render(layout, context)
        resp = Response(block.get_content(), mimetype="text/html")
        resp.headers["X-Flex-Checksum"] = block.get_checksum() or ""
        return resp

    return app


_load_dotenv_next_to_project()
app_config.reload()

setup_logging(level="INFO", log_file="logs/web_app.log")

app = create_app()

if __name__ == "__main__":
    logging.getLogger("werkzeug").setLevel(logging.INFO)
    app.run(debug=app_config.debug, port=5000)
