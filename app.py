from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request, send_from_directory

try:
    from .game import (  # type: ignore
        CLIP_NAMES,
        EngineSettings,
        GameState,
        Session,
        SessionManager,
        env_int,
        render_clip,
        tile_to_json,
    )
except ImportError:
    from game import (  # type: ignore
        CLIP_NAMES,
        EngineSettings,
        GameState,
        Session,
        SessionManager,
        env_int,
        render_clip,
        tile_to_json,
    )

MAX_SESSIONS = env_int("MEMORY_MAX_SESSIONS", 256)
SESSION_IDLE_SECONDS = env_int("MEMORY_SESSION_IDLE_S", 1800)

# Serve static assets from ./static (explicit absolute path)
STATIC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "static"))
app = Flask(__name__, static_url_path="/static", static_folder=STATIC_DIR)
app.logger.setLevel(logging.INFO)

sessions = SessionManager(
    max_sessions=MAX_SESSIONS,
    settings=EngineSettings.from_env(),
    idle_timeout=SESSION_IDLE_SECONDS,
)


# ---------- Static routes ----------

@app.get("/")
def index() -> Any:
    return send_from_directory(app.static_folder, "index.html")


@app.get("/main.js")
def main_js() -> Any:
    resp = send_from_directory(app.static_folder, "main.js")
    resp.headers["Content-Type"] = "application/javascript; charset=utf-8"
    return resp


@app.get("/styles.css")
def styles_css() -> Any:
    resp = send_from_directory(app.static_folder, "styles.css")
    resp.headers["Content-Type"] = "text/css; charset=utf-8"
    return resp


@app.get("/static/<path:filename>")
def static_files(filename: str) -> Any:
    return send_from_directory(app.static_folder, filename)


@app.get("/audio/<name>.wav")
def audio_clip(name: str) -> Any:
    if name not in CLIP_NAMES:
        return jsonify({"ok": False, "error": f"unknown clip: {name}"}), 404
    resp = Response(render_clip(name), mimetype="audio/wav")
    resp.headers["Cache-Control"] = "public, max-age=86400"
    return resp


# ---------- JSON helpers ----------

def _json_body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def state_to_json(s: GameState) -> Dict[str, Any]:
    return {
        "phase": s.phase.value,
        "moves": int(s.moves),
        "elapsedSeconds": int(s.elapsed_seconds),
        "locked": bool(s.locked),
        "tiles": [tile_to_json(t) for t in s.board],
    }


def _session_payload(session: Session, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ok": True,
        "gameId": session.game_id,
        "state": state_to_json(session.engine.state),
    }
    payload.update(extra)
    payload.update(session.drain())
    return payload


def _lookup_session(body: Dict[str, Any]) -> Tuple[Optional[Session], Optional[Tuple[Any, int]]]:
    game_id = body.get("gameId")
    if not isinstance(game_id, str) or not game_id:
        return None, (jsonify({"ok": False, "error": "gameId required"}), 400)
    session = sessions.get(game_id)
    if session is None:
        return None, (jsonify({"ok": False, "error": "unknown game"}), 404)
    return session, None


# ---------- Core Game API (required by main.js) ----------

@app.post("/api/new")
def api_new() -> Any:
    body = _json_body()
    seed = body.get("seed", None)
    if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool)):
        return jsonify({"ok": False, "error": "seed must be an integer"}), 400
    previous = body.get("gameId")
    if isinstance(previous, str) and previous:
        sessions.discard(previous)
    session = sessions.create(seed=seed)
    app.logger.info(f"[game-new] game={session.game_id} sessions={len(sessions)}")
    return jsonify(_session_payload(session))


@app.post("/api/reveal")
def api_reveal() -> Any:
    body = _json_body()
    session, error = _lookup_session(body)
    if error:
        return error
    tile = body.get("tile")
    if not isinstance(tile, int) or isinstance(tile, bool):
        return jsonify({"ok": False, "error": "tile must be an integer"}), 400
    try:
        outcome = session.engine.reveal(tile)
    except IndexError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    return jsonify(_session_payload(session, outcome=outcome.value))


@app.post("/api/state")
def api_state() -> Any:
    body = _json_body()
    session, error = _lookup_session(body)
    if error:
        return error
    return jsonify(_session_payload(session))


@app.post("/api/reset")
def api_reset() -> Any:
    body = _json_body()
    session, error = _lookup_session(body)
    if error:
        return error
    session.engine.reset()
    app.logger.info(f"[game-reset] game={session.game_id}")
    return jsonify(_session_payload(session))


@app.post("/api/audio/toggle")
def api_audio_toggle() -> Any:
    body = _json_body()
    session, error = _lookup_session(body)
    if error:
        return error
    channel = body.get("channel")
    if channel == "sfx":
        session.audio.toggle_sfx()
    elif channel == "music":
        session.audio.toggle_music()
    else:
        return jsonify({"ok": False, "error": "channel must be 'sfx' or 'music'"}), 400
    return jsonify(_session_payload(session))


def run_server(host: str = "127.0.0.1", port: int = 5000) -> None:
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO)
    app.run(host=host, port=port, debug=debug, threaded=True)


# Entrypoint for "python app.py"
if __name__ == "__main__":
    run_server(host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "5000")))
