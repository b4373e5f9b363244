import os
import logging
import uuid
from dataclasses import dataclass

from flask import Flask, request, jsonify, g
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.middleware.proxy_fix import ProxyFix
from dotenv import load_dotenv

load_dotenv()

from errors import InputError, TransportError
from geolocation import LocationResult, resolve_reference_point
from models import LocalCacheStore
from presets import AREA_LABELS, CATEGORY_LABELS
from recommendation_engine import RankingContext, get_ranked_recommendations, summarize
from remote_source import RemoteHotspotSource
from session_state import AppSession
from sync_trace import traced
from sync import SyncOrchestrator, filter_hotspots
from daily_briefing import build_daily_briefing
from temporal import get_time_context
from weather import get_current_weather, serialize_observation

# ---------------------------------------------------------------------------
# Sentry error tracking — gated on SENTRY_DSN; silent when unset (local dev)
# ---------------------------------------------------------------------------
_sentry_dsn = os.environ.get("SENTRY_DSN")
if _sentry_dsn:
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    import requests.exceptions

    def _sentry_before_send(event, hint):
        """Demote expected failures to breadcrumbs; only unexpected errors become Sentry events."""
        exc_info = hint.get("exc_info")
        if exc_info:
            exc_type, exc_value, _ = exc_info
            msg = str(exc_value) if exc_value else ""
            # Remote table / Open-Meteo outages are handled by the sync layer
            if exc_type is not None and issubclass(
                exc_type, (requests.exceptions.RequestException, TransportError)
            ):
                sentry_sdk.add_breadcrumb(
                    category="transport",
                    message=msg,
                    level="warning",
                )
                return None
        return event

    sentry_sdk.init(
        dsn=_sentry_dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.0,
        environment=os.environ.get("HOTSPOT_ENVIRONMENT", "production"),
        before_send=_sentry_before_send,
    )

app = Flask(__name__)

# Behind a reverse proxy, rewrite remote_addr so Flask-Limiter sees the client IP.
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Rate limiting
# In-memory storage is per-process; fine for a single-driver deployment.
# ---------------------------------------------------------------------------
RATE_LIMIT_DEFAULT = os.environ.get("RATE_LIMIT_DEFAULT", "60/minute")
RATE_LIMIT_SYNC = os.environ.get("RATE_LIMIT_SYNC", "6/minute")

limiter = Limiter(
    get_remote_address,
    app=app,
    default_limits=[RATE_LIMIT_DEFAULT],
    storage_uri="memory://",
)
logging.getLogger("flask-limiter").setLevel(logging.WARNING)

MAX_DISTANCE_KM = float(os.environ.get("HOTSPOT_MAX_DISTANCE_KM", "5"))


# ---------------------------------------------------------------------------
# Application context — built once at startup, reached through app.extensions
# ---------------------------------------------------------------------------

@dataclass
class HotspotContext:
    cache: LocalCacheStore
    orchestrator: SyncOrchestrator
    session: AppSession


def build_context(cache=None, remote=None, is_online=True, clock=None) -> HotspotContext:
    cache = cache or LocalCacheStore()
    cache.init_db()
    orchestrator = SyncOrchestrator(
        cache,
        remote or RemoteHotspotSource(),
        is_online=is_online,
        clock=clock,
    )
    return HotspotContext(cache=cache, orchestrator=orchestrator, session=AppSession.load(cache))


def _ctx() -> HotspotContext:
    return app.extensions["hotspot"]


@app.before_request
def _set_request_context():
    g.request_id = uuid.uuid4().hex[:10]


def _bool_arg(name: str) -> bool:
    return request.args.get(name, "").lower() in ("1", "true", "yes")


def _float_arg(name: str):
    """Parse an optional float query param. Raises InputError if malformed."""
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise InputError(f"{name} must be a number") from None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.route("/healthz")
@limiter.exempt
def healthz():
    """Lightweight health-check endpoint for monitoring."""
    ctx = _ctx()
    return jsonify({
        "status": "ok",
        "remote_configured": ctx.orchestrator.remote.is_configured,
        "sync_status": ctx.orchestrator.get_merged_points_of_interest().sync_status,
        "cached_hotspots": ctx.cache.count(),
        "schema_version": ctx.cache.schema_version(),
    })


@app.route("/api/hotspots")
def list_hotspots():
    ctx = _ctx()
    merged = ctx.orchestrator.get_merged_points_of_interest()
    try:
        points = filter_hotspots(
            merged.points,
            category=request.args.get("category") or None,
            area=request.args.get("area") or None,
            safe_only=_bool_arg("safe_only"),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    body = merged.to_dict()
    body["points"] = [p.to_record() for p in points]
    body["filtered_count"] = len(points)
    body["last_sync_label"] = ctx.orchestrator.format_last_sync()
    body["categories"] = {c.value: label for c, label in CATEGORY_LABELS.items()}
    body["areas"] = AREA_LABELS
    return jsonify(body)


@app.route("/api/sync", methods=["POST"])
@limiter.limit(RATE_LIMIT_SYNC)
def force_sync():
    orchestrator = _ctx().orchestrator
    accepted = orchestrator.is_online
    ok = orchestrator.force_sync()
    merged = orchestrator.get_merged_points_of_interest()
    return jsonify({
        "accepted": accepted,
        "ok": ok,
        "sync_status": merged.sync_status,
        "total_count": merged.total_count,
        "last_sync_label": orchestrator.format_last_sync(),
    })


@app.route("/api/connectivity", methods=["POST"])
def set_connectivity():
    data = request.get_json(silent=True) or {}
    online = data.get("online")
    if not isinstance(online, bool):
        return jsonify({"error": "online must be true or false"}), 400
    status = _ctx().orchestrator.set_connectivity(online)
    return jsonify({"online": online, "sync_status": status.value})


@app.route("/api/recommendations")
def recommendations():
    ctx = _ctx()
    lat = _float_arg("lat")
    lng = _float_arg("lng")
    max_km = _float_arg("max_km")
    if max_km is not None and not (0 < max_km < float("inf")):
        raise InputError("max_km must be positive")
    limit = request.args.get("limit", type=int)
    if limit is not None and limit < 1:
        raise InputError("limit must be at least 1")

    with traced("recommend", trace_id=f"recommend-{g.request_id}") as trace:
        with trace.stage("locate"):
            location = LocationResult.from_reported(lat, lng)
            reference = resolve_reference_point(location)

        with trace.stage("weather"):
            weather = get_current_weather(*reference.coordinates, cache=ctx.cache)

        with trace.stage("rank"):
            ranking_ctx = RankingContext.build(
                reference.coordinates,
                weather=weather,
                max_distance_km=max_km or MAX_DISTANCE_KM,
                is_live_fix=reference.is_live_fix,
            )
            merged = ctx.orchestrator.get_merged_points_of_interest()
            ranked = get_ranked_recommendations(merged.points, ranking_ctx)
    limit = limit or 20

    return jsonify({
        "reference_point": {
            "lat": reference.coordinates.lat,
            "lng": reference.coordinates.lng,
            "is_live_fix": reference.is_live_fix,
            "location_failure": location.failure.value if location.failure else None,
        },
        "summary": summarize(ranked, ranking_ctx).to_dict(),
        "weather": serialize_observation(weather),
        "sync_status": merged.sync_status,
        "recommendations": [c.to_dict() for c in ranked[:limit]],
    })


@app.route("/api/briefing")
def daily_briefing():
    ctx = _ctx()
    session = ctx.session
    if not session.should_show_daily_briefing():
        return jsonify({"show": False})

    lat = _float_arg("lat")
    lng = _float_arg("lng")
    weather = None
    if lat is not None and lng is not None:
        weather = get_current_weather(lat, lng, cache=ctx.cache)
    briefing = build_daily_briefing(get_time_context(), weather, ctx.orchestrator.presets)
    session.mark_daily_briefing_shown()
    return jsonify({"show": True, "briefing": briefing.to_dict()})


@app.route("/api/session")
def session_state():
    return jsonify(_ctx().session.to_dict())


@app.route("/api/onboarding", methods=["POST"])
def onboarding():
    session = _ctx().session
    action = (request.get_json(silent=True) or {}).get("action")
    if action == "next":
        session.next_onboarding_step()
    elif action == "back":
        session.previous_onboarding_step()
    elif action in ("complete", "skip"):
        session.complete_onboarding()
    elif action == "reset":
        session.reset_onboarding()
    else:
        return jsonify({"error": "action must be next, back, complete, skip or reset"}), 400
    return jsonify(session.to_dict())


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.errorhandler(InputError)
def bad_input(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(429)
def rate_limit_exceeded(e):
    return jsonify({"error": "Too many requests. Please wait and try again."}), 429


@app.errorhandler(404)
def not_found(e):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(500)
def internal_error(e):
    logger.error("Unhandled error in request %s", getattr(g, "request_id", "-"))
    return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

# Build the cache and run the first sync on import (safe to call repeatedly)
app.extensions["hotspot"] = build_context()
app.extensions["hotspot"].orchestrator.start()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
