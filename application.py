import json
import logging
import queue
from dataclasses import dataclass, replace
from typing import Any, Optional

from flask import (Blueprint, Flask, Response, current_app, flash, jsonify, redirect,
                   render_template, request, stream_with_context, url_for)

from auth import AuthService, current_session, end_session, start_session
from bins import get_bin_details
from campus_map import MapConfig
from classifier import GeminiClassifier, build_request
from database import USERS, ImageStore, connect, ensure_indexes
from errors import (AuthFailure, EcoSnapError, InferenceContractViolation,
                    InferenceUnavailable)
from leaderboard import LeaderboardView, leaderboard_query
from ledger import GamificationLedger
from live import ChangeNotifier, ChangeStreamWatcher
from profiles import USERS_TOPIC, ProfileStore
from settings import load_settings
from tasks import WriteQueue

logger = logging.getLogger(__name__)

KEEP_ALIVE_SECONDS = 15


@dataclass
class Services:
    settings: Any
    db: Any
    classifier: Any
    auth: AuthService
    profiles: ProfileStore
    ledger: GamificationLedger
    write_queue: WriteQueue
    notifier: ChangeNotifier
    leaderboard: Any
    map_config: MapConfig
    watcher: Optional[ChangeStreamWatcher] = None


bp = Blueprint("ecosnap", __name__)


def services():
    return current_app.extensions["ecosnap"]


def wants_json():
    return request.is_json or request.accept_mimetypes.best == "application/json"


def form_value(name):
    if request.is_json:
        return (request.get_json(silent=True) or {}).get(name)
    return request.form.get(name)


def begin_session(identity):
    ctx = start_session(identity)
    svc = services()
    # profile bootstrap is best-effort, same as points and history
    svc.write_queue.submit("ensure_profile", svc.profiles.ensure_profile, identity)
    return ctx


#home page
@bp.route("/")
def home():
    ctx = current_session()
    if ctx is None:
        ctx = begin_session(services().auth.sign_in_anonymously())
    return render_template(
        "home.html",
        identity=ctx.identity,
        map=services().map_config.to_dict(),
        guide=get_bin_details("Blue").to_dict(),
    )


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        try:
            identity = services().auth.sign_in(form_value("email"), form_value("password"))
        except AuthFailure as e:
            if wants_json():
                return jsonify(success=False, error=e.message), 401
            flash(e.message)
            return render_template("auth.html", is_login=True), 401
        begin_session(identity)
        if wants_json():
            return jsonify(success=True, user=identity.to_dict())
        return redirect(url_for("ecosnap.home"))
    return render_template("auth.html", is_login=True)


@bp.route("/signup", methods=["GET", "POST"])
def signup():
    if request.method == "POST":
        try:
            identity = services().auth.sign_up(
                form_value("email"), form_value("password"), form_value("name") or form_value("displayName")
            )
        except AuthFailure as e:
            if wants_json():
                return jsonify(success=False, error=e.message), 400
            flash(e.message)
            return render_template("auth.html", is_login=False), 400
        begin_session(identity)
        if wants_json():
            return jsonify(success=True, user=identity.to_dict()), 201
        return redirect(url_for("ecosnap.home"))
    return render_template("auth.html", is_login=False)


@bp.route("/login/anonymous", methods=["POST"])
def login_anonymous():
    identity = services().auth.sign_in_anonymously()
    begin_session(identity)
    return jsonify(success=True, user=identity.to_dict())


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    end_session()
    if request.method == "POST" or wants_json():
        return jsonify(success=True)
    return redirect(url_for("ecosnap.login"))


#classify waste
@bp.route("/classifywaste", methods=["POST"])
def classifywaste():
    svc = services()
    ctx = current_session()
    upload = request.files.get("image") or request.files.get("file")

    scan = build_request(upload, max_bytes=svc.settings.max_image_bytes)
    try:
        result = svc.classifier.classify(scan)
    except EcoSnapError:
        raise
    except Exception as e:
        logger.exception("unexpected error during classification")
        raise InferenceUnavailable(str(e)) from e

    scheduled = svc.ledger.record_scan(ctx, result, scan)
    return jsonify(
        success=True,
        data=result.to_dict(),
        bin=get_bin_details(result.bin_color).to_dict(),
        points_awarded=svc.ledger.points_per_scan if scheduled else 0,
    )


@bp.route("/me", methods=["GET", "POST"])
def me():
    ctx = current_session()
    if ctx is None:
        return jsonify(success=False, error="Not authenticated"), 401
    profiles = services().profiles
    if request.method == "POST":
        # the queued bootstrap may not have run yet for a brand-new session
        profiles.ensure_profile(ctx.identity)
        profile = profiles.update_display_name(ctx.uid, form_value("displayName"))
        ctx = start_session(replace(ctx.identity, display_name=profile.display_name))
    else:
        profile = profiles.get(ctx.uid)
    if profile is None:
        return jsonify(success=False, error="User not found"), 404
    return jsonify(
        success=True,
        user=dict(profile.to_dict(), isAnonymous=ctx.is_anonymous),
        recent_activity=[e.to_dict() for e in profiles.recent_events(ctx.uid)],
        classifications=profiles.count_events(ctx.uid),
    )


@bp.route("/leaderboard", methods=["GET"])
def leaderboard():
    ctx = current_session()
    view = LeaderboardView(services().leaderboard, ctx)
    if ctx is None:
        return jsonify(view.render()), 401
    with view:
        return jsonify(view.render())


def sse(payload):
    return f"data: {json.dumps(payload)}\n\n"


@bp.route("/leaderboard/stream", methods=["GET"])
def leaderboard_stream():
    ctx = current_session()
    query = services().leaderboard

    def generate():
        updates = queue.Queue()
        view = LeaderboardView(query, ctx, on_render=updates.put)
        yield sse(view.render())
        if ctx is None:
            return
        # the subscription is released when the client goes away (GeneratorExit)
        with view:
            while True:
                try:
                    payload = updates.get(timeout=KEEP_ALIVE_SECONDS)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                yield sse(payload)

    return Response(stream_with_context(generate()), mimetype="text/event-stream",
                    headers={"Cache-Control": "no-cache"})


@bp.route("/bins/<color>", methods=["GET"])
def bin_guide(color):
    return jsonify(get_bin_details(color).to_dict())


@bp.route("/map", methods=["GET"])
def campus_map():
    return jsonify(services().map_config.to_dict())


@bp.app_errorhandler(EcoSnapError)
def handle_ecosnap_error(e):
    if isinstance(e, (InferenceContractViolation, InferenceUnavailable)):
        logger.error("analysis failed: %s", e.message)
        message = "Failed to analyze image. Please try again."
    else:
        message = e.message
    return jsonify(success=False, error=message), e.status_code


# here is route of 404 means page not found error
@bp.app_errorhandler(404)
def page_not_found(e):
    if wants_json():
        return jsonify(success=False, error="Not found"), 404
    return render_template("404.html"), 404


def create_app(settings=None, db=None, classifier=None, write_queue=None):
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    # a little headroom over the image limit for the rest of the multipart body
    app.config["MAX_CONTENT_LENGTH"] = settings.max_image_bytes + 1024 * 1024

    if db is None:
        db = connect(settings)
    ensure_indexes(db)

    notifier = ChangeNotifier()
    write_queue = write_queue or WriteQueue(sync=settings.write_queue_sync)
    profiles = ProfileStore(db, notifier)
    ledger = GamificationLedger(
        profiles,
        write_queue,
        points_per_scan=settings.points_per_scan,
        award_anonymous=settings.award_anonymous_points,
        image_store=ImageStore(db) if settings.store_scan_images else None,
    )

    classifier = classifier or GeminiClassifier.from_settings(settings)
    if not getattr(classifier, "available", True):
        logger.warning("GEMINI_API_KEY is not set; image analysis will fail")

    map_config = MapConfig.from_settings(settings)
    if not map_config.enabled:
        logger.warning("GOOGLE_MAPS_API_KEY is not set; campus map disabled")

    watcher = None
    if settings.mongo_change_streams:
        watcher = ChangeStreamWatcher(db[USERS], notifier, USERS_TOPIC).start()

    app.extensions["ecosnap"] = Services(
        settings=settings,
        db=db,
        classifier=classifier,
        auth=AuthService(db),
        profiles=profiles,
        ledger=ledger,
        write_queue=write_queue,
        notifier=notifier,
        leaderboard=leaderboard_query(db[USERS], notifier, settings.leaderboard_size),
        map_config=map_config,
        watcher=watcher,
    )
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    application = create_app()
    application.run()
