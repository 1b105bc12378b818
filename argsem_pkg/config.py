from __future__ import annotations
import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


# Worker processes for the subset search (1 = run on the calling thread)
WORKERS = int(os.getenv("ARGSEM_WORKERS", "1"))

# tqdm bars during long enumerations
SHOW_PROGRESS = _env_bool("ARGSEM_SHOW_PROGRESS", False)

# "pruned" or "powerset"
STRATEGY = os.getenv("ARGSEM_STRATEGY", "pruned")

# SAT oracle defaults (python-sat solver name, seconds or None)
SAT_SOLVER = os.getenv("ARGSEM_SAT_SOLVER", "g4")
ORACLE_TIMEOUT = _env_float("ARGSEM_ORACLE_TIMEOUT")

LOG_LEVEL = os.getenv("ARGSEM_LOG_LEVEL", "WARNING")


def configure_logging(level: str | int | None = None) -> None:
    """Set up root logging for scripts and notebooks using the engine."""
    level = level if level is not None else LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
