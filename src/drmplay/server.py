"""HTTP server exposing descriptor parsing and playback history."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from quart import Quart, jsonify, request

from .descriptor import EmptyInputError, derive_title, parse
from .history import DiskResumeStore, StoreWriteError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = Quart(__name__)
store = DiskResumeStore(Path(os.environ.get("DRMPLAY_HISTORY_DIR", "history")))


@app.route("/api")
async def api_info():
    """API endpoint with API info."""
    return jsonify({
        "service": "drmplay",
        "version": "0.1.0",
        "endpoints": {
            "descriptors": "/descriptors",
            "history": "/history",
            "entry": "/history/entry?url=<url>",
            "position": "/history/position",
        }
    })


@app.route("/descriptors", methods=["POST"])
async def open_descriptor():
    """Parse a descriptor and record it in the playback history."""
    data = await request.get_json(silent=True)
    raw = data.get("descriptor") if isinstance(data, dict) else None

    try:
        config = parse(raw if isinstance(raw, str) else None)
    except EmptyInputError as exc:
        return jsonify({"error": f"Failed to load URL: {exc}"}), 400

    title = derive_title(config.url)
    resume_position_ms = 0
    try:
        await asyncio.to_thread(store.record_entry, config.url, title)
        resume_position_ms = await asyncio.to_thread(store.load_position, config.url)
    except StoreWriteError as exc:
        logger.warning("History unavailable for %s: %s", config.url, exc)

    payload = config.to_dict()
    payload["title"] = title
    payload["resume_position_ms"] = resume_position_ms
    return jsonify(payload), 201


@app.route("/history", methods=["GET"])
async def list_history():
    """List every remembered stream."""
    try:
        entries = await asyncio.to_thread(store.entries)
    except StoreWriteError as exc:
        logger.exception("Failed to list history")
        return jsonify({"error": str(exc)}), 503

    return jsonify({"entries": [entry.to_dict() for entry in entries]})


@app.route("/history/entry", methods=["GET"])
async def get_entry():
    """Get the history entry for one stream."""
    url = request.args.get("url")
    if not url:
        return jsonify({"error": "url is required"}), 400

    try:
        entry = await asyncio.to_thread(store.get_entry, url)
    except StoreWriteError as exc:
        return jsonify({"error": str(exc)}), 503

    if not entry:
        return jsonify({"error": "Entry not found"}), 404

    return jsonify(entry.to_dict())


@app.route("/history/position", methods=["PUT"])
async def save_position():
    """Save the playback position for a stream."""
    data = await request.get_json(silent=True)

    if not isinstance(data, dict) or not data.get("url") or "position_ms" not in data:
        return jsonify({"error": "url and position_ms are required"}), 400

    try:
        position_ms = int(data["position_ms"])
        await asyncio.to_thread(store.save_position, data["url"], position_ms)
    except (TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid position_ms: {exc}"}), 400
    except StoreWriteError as exc:
        logger.warning("Failed to save position for %s: %s", data["url"], exc)
        return jsonify({"error": str(exc)}), 503

    return jsonify({"url": data["url"], "position_ms": position_ms}), 200


if __name__ == "__main__":
    import sys

    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8000
    app.run(host="0.0.0.0", port=port)
