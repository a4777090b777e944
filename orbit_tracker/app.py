"""
Orbit Tracker Service

JSON API over the tracking core for map/globe front-ends:

    GET /api/health
    GET /api/satellites
    GET /api/satellites/<norad_id>/position?time=&offset_minutes=
    GET /api/satellites/<norad_id>/path?time=&window=&step=
    GET /api/satellites/<norad_id>/history
    GET /api/terminator?time=

Unavailable objects answer 404, unpositionable ones 422.
"""

import math
import os
import traceback
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import config
from logging_config import configure_logging, get_logger
from orbit_tracker import __version__
from orbit_tracker.catalog import find_by_norad
from orbit_tracker.ground_track import build_path, count_antimeridian_crossings
from orbit_tracker.models import Positioned, Unavailable
from orbit_tracker.propagator import propagate_result
from orbit_tracker.solar import subsolar_point
from orbit_tracker.terminator import night_region
from orbit_tracker.tracker import SatelliteTracker

logger = get_logger(__name__)


class BadRequest(ValueError):
    pass


def parse_instant(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise BadRequest(f"Invalid time: {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _float_arg(name: str, default: float) -> float:
    value = request.args.get(name)
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except ValueError as e:
        raise BadRequest(f"Invalid {name}: {value}") from e
    if not math.isfinite(number):
        raise BadRequest(f"Invalid {name}: {value}")
    return number


def _requested_instant(tracker: SatelliteTracker) -> datetime:
    instant = parse_instant(request.args.get("time")) or tracker.current_instant()
    offset = _float_arg("offset_minutes", 0.0)
    try:
        return instant + timedelta(minutes=offset)
    except OverflowError as e:
        raise BadRequest(f"offset_minutes out of range: {offset}") from e


def _path_parameters() -> Tuple[float, float]:
    window = _float_arg("window", config.ORBIT_WINDOW_MINUTES)
    step = _float_arg("step", config.ORBIT_STEP_MINUTES)
    if step <= 0 or window < 0:
        raise BadRequest("window must be >= 0 and step > 0")
    if window > config.MAX_PATH_WINDOW_MINUTES:
        raise BadRequest(f"window must not exceed {config.MAX_PATH_WINDOW_MINUTES:g} minutes")
    if window / step > config.MAX_PATH_SAMPLES:
        raise BadRequest(f"window/step must not exceed {config.MAX_PATH_SAMPLES} samples")
    return window, step


def _fetch_elements(tracker: SatelliteTracker, norad_id: int):
    if norad_id <= 0:
        raise BadRequest(f"Invalid NORAD catalog ID: {norad_id}")
    return tracker.store.fetch_elements(norad_id)


def _path_point(point) -> dict:
    return {
        "lat": point.latitude,
        "lng": point.longitude,
        "timestamp": point.timestamp.isoformat(),
    }


def create_app(tracker: Optional[SatelliteTracker] = None) -> Flask:
    app = Flask(__name__)
    CORS(app)

    tracker = tracker or SatelliteTracker()
    app.config["TRACKER"] = tracker

    @app.errorhandler(BadRequest)
    def handle_bad_request(error):
        return jsonify({"error": str(error)}), 400

    @app.route("/api/health")
    def health_check():
        cached = tracker.store.cache.snapshot()
        return jsonify({
            "status": "healthy",
            "version": __version__,
            "tracking": tracker.tracking,
            "cached_tles": len(cached),
            "fallback_tles": sum(1 for tle in cached.values() if tle.source == "fallback"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    @app.route("/api/satellites")
    def list_satellites():
        return jsonify({
            "active": tracker.active_id,
            "satellites": [entry.model_dump() for entry in tracker.catalog],
        })

    @app.route("/api/satellites/<int:norad_id>/position")
    def satellite_position(norad_id: int):
        instant = _requested_instant(tracker)
        tle = _fetch_elements(tracker, norad_id)
        if tle is None:
            result = Unavailable(catalog_id=norad_id)
            return jsonify(result.model_dump(mode="json")), 404

        result = propagate_result(tle, instant)
        status = 200 if isinstance(result, Positioned) else 422
        payload = result.model_dump(mode="json")
        entry = find_by_norad(norad_id, tracker.catalog)
        payload["name"] = entry.display_name if entry else tle.name
        payload["tle_source"] = tle.source
        return jsonify(payload), status

    @app.route("/api/satellites/<int:norad_id>/path")
    def satellite_path(norad_id: int):
        instant = _requested_instant(tracker)
        window, step = _path_parameters()

        tle = _fetch_elements(tracker, norad_id)
        if tle is None:
            return jsonify(Unavailable(catalog_id=norad_id).model_dump(mode="json")), 404

        points = build_path(tle, instant, window, step)
        return jsonify({
            "catalog_id": norad_id,
            "center": instant.isoformat(),
            "window_minutes": window,
            "step_minutes": step,
            "antimeridian_crossings": count_antimeridian_crossings(points),
            "points": [_path_point(point) for point in points],
        })

    @app.route("/api/satellites/<int:norad_id>/history")
    def satellite_history(norad_id: int):
        entry = find_by_norad(norad_id, tracker.catalog)
        if entry is None:
            return jsonify({"error": f"NORAD {norad_id} is not in the catalog"}), 404
        return jsonify({
            "catalog_id": norad_id,
            "points": [_path_point(point) for point in tracker.history(entry.id)],
        })

    @app.route("/api/terminator")
    def terminator():
        instant = _requested_instant(tracker)
        sun_lat, sun_lng = subsolar_point(instant)
        return jsonify({
            "timestamp": instant.isoformat(),
            "subsolar_point": {"lat": sun_lat, "lng": sun_lng},
            "polygons": [[list(vertex) for vertex in polygon] for polygon in night_region(instant)],
        })

    @app.errorhandler(Exception)
    def handle_error(error):
        if isinstance(error, HTTPException):
            return error
        logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
        return jsonify({"error": "Internal server error"}), 500

    return app


def main():
    configure_logging()
    tracker = SatelliteTracker(show_all=True)
    availability = tracker.prepare()
    logger.info(f"TLE data ready for {sum(availability.values())}/{len(availability)} objects")
    tracker.start_tracking()

    app = create_app(tracker)
    logger.info("Starting Orbit Tracker service")
    try:
        app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
    finally:
        tracker.stop_tracking()


if __name__ == "__main__":
    main()
