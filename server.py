"""
Hoops Arcade Web Server — Layer 3 (FastAPI + WebSocket)

Serves the canvas frontend and runs the frame loop, forwarding pointer and
button commands to the controller and broadcasting game state to browser
clients over WebSocket.
"""

import asyncio
import json
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from controller import HoopsController

STATIC_DIR = Path(__file__).resolve().parent / "static"

# ── Controller ──────────────────────────────────────────────────────────────

ctrl = HoopsController()


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(game_loop())
    yield
    task.cancel()


app = FastAPI(lifespan=lifespan)

clients: list[WebSocket] = []

# ── Async game loop ─────────────────────────────────────────────────────────

TARGET_FPS = 60
FRAME_DT = 1.0 / TARGET_FPS
MAX_FRAME_DT = 0.05


async def game_loop():
    """Main loop: one physics tick per frame at ~60 fps, then broadcast."""
    last_time = time.perf_counter()

    while True:
        now = time.perf_counter()
        dt = now - last_time
        last_time = now

        # Clamp dt to avoid spiral-of-death
        if dt > MAX_FRAME_DT:
            dt = MAX_FRAME_DT

        ctrl.step(dt)

        if clients:
            frame_msg = _build_frame_message()
            dead: list[WebSocket] = []
            for ws in clients:
                try:
                    await ws.send_text(frame_msg)
                except Exception:
                    dead.append(ws)
            for ws in dead:
                if ws in clients:
                    clients.remove(ws)
        else:
            ctrl.pending_events.clear()

        # Sleep to maintain target FPS
        elapsed = time.perf_counter() - now
        sleep_time = FRAME_DT - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


def _build_frame_message() -> str:
    """Serialize current state into a JSON frame message."""
    frame = {"type": "frame", **ctrl.snapshot()}

    # Drain pending events
    frame["events"] = list(ctrl.pending_events)
    ctrl.pending_events.clear()

    frame["sounds"] = [
        {"type": ev.get("type", ""), "speed": round(float(ev.get("speed", 0.0)), 3)}
        for ev in ctrl.physics_events
    ]
    return json.dumps(frame, separators=(',', ':'))


def _build_init_message() -> str:
    court = ctrl.engine.court
    hoop = ctrl.engine.hoop
    return json.dumps({
        "type": "init",
        "court": {"width": court.width, "height": court.height, "floor": court.floor},
        "hoop": {
            "rim_x": hoop.rim_x, "rim_y": hoop.rim_y,
            "rim_radius": hoop.rim_radius, "backboard_x": hoop.backboard_x,
        },
        "ball_radius": ctrl.ball.radius,
        "game_seconds": ctrl.GAME_SECONDS,
    })


# ── Command handling ────────────────────────────────────────────────────────

def _pointer(msg: dict):
    """Return (x, y) floats from a pointer message, or None if malformed."""
    try:
        return float(msg["x"]), float(msg["y"])
    except (KeyError, TypeError, ValueError):
        return None


def _handle_command(msg: dict):
    """Dispatch one client command. Returns a reply message or None."""
    cmd = msg.get("cmd", "")
    if cmd == "pointer_down":
        pos = _pointer(msg)
        if pos is not None:
            ctrl.begin_drag(*pos)
    elif cmd == "pointer_move":
        pos = _pointer(msg)
        if pos is not None:
            ctrl.update_drag(*pos)
    elif cmd in ("pointer_up", "pointer_leave"):
        ctrl.end_drag()
    elif cmd == "start":
        ctrl.start()
    elif cmd == "reset":
        ctrl.reset()
    elif cmd == "get_state":
        return json.dumps({"type": "state_json", "data": ctrl.get_state_json()})
    return None


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    clients.append(ws)
    print(f"[WS] client connected  total={len(clients)}")

    await ws.send_text(_build_init_message())

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue
            reply = _handle_command(msg)
            if reply is not None:
                await ws.send_text(reply)
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)
        print(f"[WS] client disconnected  total={len(clients)}")


# ── Static files + root route ───────────────────────────────────────────────

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def root():
    return FileResponse(STATIC_DIR / "index.html")


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
