"""Flask application factory for the reeltime editor API."""

from flask import Flask, jsonify

from reeltime.store import CompositionStore


def create_app(projects: dict[str, CompositionStore] | None = None) -> Flask:
    app = Flask(__name__)
    # project_id -> store; owned by this app instance
    app.config["PROJECTS"] = projects if projects is not None else {}
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024  # 16 MB of project JSON

    from reeltime.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(400)
    @app.errorhandler(404)
    @app.errorhandler(409)
    def json_error(error):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "Project too large"}), 413

    return app
