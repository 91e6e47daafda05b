# core/debug.py
import os
import time
from pathlib import Path


_DEBUG = os.getenv("AP_DEBUG") == "1"
LOG_PATH = Path(__file__).resolve().parents[1] / "aesthetic_debug.log"


def debug_log(message: str) -> None:
    if not _DEBUG:
        return

    try:
        ts = time.strftime("%Y-%m-%d %H:%M:%S")
    except Exception:
        ts = "unknown-time"

    line = f"[{ts}] {message}\n"
    try:
        with LOG_PATH.open("a", encoding="utf-8") as f:
            f.write(line)
    except OSError:
        pass

    print(f"[DEBUG] {message}")


def log(tag: str, message: str) -> None:
    print(f"[{tag}] {message}")
    debug_log(f"{tag}: {message}")
