"""Launch the maze backend and the pygame race visualizer together.

Usage:
    python run_desktop.py

The backend runs in a child process; the visualizer starts once the backend
answers on /api/runs and the backend is terminated when the window closes.
"""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import requests

ROOT = Path(__file__).parent.resolve()
BACKEND_URL = "http://localhost:5000"
STARTUP_TIMEOUT = 10.0


def wait_for_backend(proc) -> bool:
    deadline = time.time() + STARTUP_TIMEOUT
    while time.time() < deadline:
        if proc.poll() is not None:
            return False
        try:
            requests.get(f"{BACKEND_URL}/api/runs", timeout=0.5)
            return True
        except requests.RequestException:
            time.sleep(0.2)
    return False


def main():
    backend_cmd = [sys.executable, "-m", "backend.app"]
    print("Starting backend:", " ".join(backend_cmd))
    backend_proc = subprocess.Popen(backend_cmd, cwd=str(ROOT))

    try:
        if not wait_for_backend(backend_proc):
            print("Backend did not come up within", STARTUP_TIMEOUT, "s")
            return 1
        viz_cmd = [sys.executable, str(ROOT / "visualizations" / "maze_visualizer.py")]
        print("Launching maze visualizer...")
        return subprocess.call(viz_cmd)
    finally:
        print("Shutting down backend...")
        if os.name == "nt":
            backend_proc.send_signal(signal.CTRL_BREAK_EVENT)
        else:
            backend_proc.terminate()
        try:
            backend_proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            backend_proc.kill()


if __name__ == "__main__":
    sys.exit(main())
