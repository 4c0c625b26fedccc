"""Sims Legacy Agent — dev launcher. Starts the API server in watch mode."""

import argparse
import os
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Sims Legacy Agent dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create demo legacy data")
    args = parser.parse_args()

    data_dir = args.data_dir or Path("data")
    if args.demo:
        from legacy_agent.demo import DEMO_USER_ID, create_demo_data
        from legacy_agent.storage import Storage
        legacy = create_demo_data(Storage(data_dir))
        print(f"Demo legacy {legacy.legacy_id} (X-User-Id: {DEMO_USER_ID})")

    # Subprocess env so the server picks up the same data dir
    env = os.environ.copy()
    env["DATA_DIR"] = str(data_dir.resolve())

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "legacy_agent.app:app", "--reload",
         "--host", HOST, "--port", BACKEND_PORT],
        cwd=ROOT, env=env,
    )
    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
        proc.terminate()
        proc.wait()


if __name__ == "__main__":
    main()
