# lorekeeper.py — append-only ASCII event ledger + opt-in debug log
import os
import sys
import traceback
from datetime import datetime

DEFAULT_ROOT = os.environ.get("INVENTIONS_DATA_DIR") or os.path.join(os.path.expanduser("~"), ".inventions")

_root = DEFAULT_ROOT
DEBUG_ON = os.environ.get("INVENTIONS_DEBUG", "0") not in ("0", "", "false", "False", "FALSE")

DIV = "=" * 79

CHRONICLES_HEADER = f"""{DIV}
INVENTIONS CHRONICLES - app events and errors
{DIV}
note: append chronologically; never rewrite history
{DIV}
"""


def set_root(path: str) -> None:
    """Point the ledger at a data directory (lore/ and debug.log live under it)."""
    global _root
    _root = path


def lore_dir() -> str:
    return os.path.join(_root, "lore")


def chronicles_path() -> str:
    return os.path.join(lore_dir(), "chronicles.txt")


def debug_log_path() -> str:
    return os.path.join(_root, "debug.log")


def _ensure_dirs_and_headers():
    os.makedirs(lore_dir(), exist_ok=True)
    path = chronicles_path()
    if not os.path.exists(path):
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(CHRONICLES_HEADER)


def _append_block(path: str, title: str, lines: list[str]) -> None:
    _ensure_dirs_and_headers()
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    block = [DIV, f"{title} - {ts}", DIV]
    block.extend(lines)
    block.append(DIV)
    block.append("end of entry")
    block.append(DIV)
    with open(path, "a", encoding="utf-8", newline="\n") as f:
        f.write("\n".join(block) + "\n")


def append_to_chronicles(title: str, lines: list[str]) -> None:
    _append_block(chronicles_path(), title, lines)


def log_app_event(event: str, details: list[str] | None = None) -> None:
    details = details or []
    lines = [f"event: {event}"]
    lines.extend([f"- {d}" for d in details])
    try:
        append_to_chronicles("app log", lines)
    except OSError as e:
        debug(e, f"log_app_event({event})")


def log_error(event: str, err: Exception) -> None:
    tb = "".join(traceback.format_exception(type(err), err, err.__traceback__))
    lines = [f"error: {event}", "traceback:", tb.strip()]
    try:
        append_to_chronicles("app error", lines)
    except OSError as e:
        debug(e, f"log_error({event})")


def debug(exc: Exception, where: str = "") -> None:
    """
    Lightweight diagnostics. Enable with INVENTIONS_DEBUG=1.
    Writes to <data dir>/debug.log and stderr; swallows its own I/O errors.
    """
    if not DEBUG_ON:
        return
    stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    msg = f"[{stamp}] {where}: {exc}\n{tb}"
    print(msg, file=sys.stderr)
    try:
        os.makedirs(_root, exist_ok=True)
        with open(debug_log_path(), "a", encoding="utf-8") as f:
            f.write(msg + "\n")
    except OSError:
        pass


def read_chronicles() -> str:
    try:
        with open(chronicles_path(), "r", encoding="utf-8") as f:
            return f.read()
    except OSError:
        return ""
