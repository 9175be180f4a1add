"""Flask backend that starts parallel maze runs and streams their results via SocketIO.

A run is started over HTTP and executed in a background task. Every finished
maze is emitted as an ``astar_task`` event and the final report (shared
counters plus the exact per-maze totals) as ``astar_done``. Reports are also
kept in memory and can be polled with ``GET /api/runs/<run_id>``.
"""
from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO

from algorithms.maze_runner import DEFAULT_SIZES, DEFAULT_WORKERS, SolverConfig, run_all

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["SECRET_KEY"] = "change-me"  # in production override via env
app.config["MAX_GRID_SIDE"] = 2000
socketio = SocketIO(app, async_mode="threading", cors_allowed_origins="*")  # runs use real threads

# Enable CORS for /api/* endpoints so that frontend localhost:5173 can POST
CORS(app, resources={r"/api/*": {"origins": "*"}})

# run id -> {"status": ..., "report": ...}
_runs: Dict[str, Dict[str, Any]] = {}
_runs_lock = Lock()


def _make_config(data: Dict[str, Any]) -> SolverConfig:
    sizes = data.get("sizes", list(DEFAULT_SIZES))
    if not isinstance(sizes, list):
        raise ValueError("sizes must be a list")
    config = SolverConfig(
        sizes=[tuple(s) if isinstance(s, list) else s for s in sizes],
        workers=int(data.get("workers", DEFAULT_WORKERS)),
        obstacle_ratio=float(data.get("obstacle_ratio", 0.2)),
        synchronized=bool(data.get("synchronized", False)),
        race_window=float(data.get("race_window", 0.0)),
        seed=data.get("seed"),
    )
    limit = app.config["MAX_GRID_SIDE"]
    if any(rows > limit or cols > limit for rows, cols in config.sizes):
        raise ValueError(f"grid side must not exceed {limit}")
    return config


@app.route("/api/run/astar", methods=["POST"])
def run_astar():
    data = request.get_json(force=True, silent=True) or {}
    try:
        config = _make_config(data)
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400

    include_grids = bool(data.get("include_grids", False))
    run_id = str(data.get("run_id") or f"astar_{id(config)}")

    with _runs_lock:
        _runs[run_id] = {"status": "running", "report": None}

    def _on_result(res):
        socketio.emit("astar_task", {"run_id": run_id, "task": res.to_dict(include_grids)})

    def _background_task():
        try:
            report = run_all(config, on_result=_on_result, keep_grids=include_grids)
        except Exception as e:
            logger.exception("Run %s failed", run_id)
            with _runs_lock:
                _runs[run_id] = {"status": "failed", "report": None, "error": str(e)}
            socketio.emit("astar_failed", {"run_id": run_id, "error": str(e)})
            return
        payload = report.to_dict()
        with _runs_lock:
            _runs[run_id] = {"status": "done", "report": payload}
        socketio.emit("astar_done", {"run_id": run_id, "report": payload})
        logger.info("Run %s finished in %.3f s", run_id, report.wall_seconds)

    socketio.start_background_task(_background_task)

    return jsonify({"status": "started", "run_id": run_id})


@app.route("/api/runs", methods=["GET"])
def list_runs():
    with _runs_lock:
        return jsonify(list(_runs.keys()))


@app.route("/api/runs/<run_id>", methods=["GET"])
def get_run(run_id):
    with _runs_lock:
        run = _runs.get(run_id)
    if run is None:
        return jsonify({"error": f"unknown run {run_id}"}), 404
    return jsonify(run)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    socketio.run(app, host="0.0.0.0", port=5000, debug=True, allow_unsafe_werkzeug=True)
