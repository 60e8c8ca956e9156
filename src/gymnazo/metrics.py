"""Console logging setup and JSONL metrics for training runs.

Library modules log through ``logging.getLogger(__name__)``, so every
record lands under the ``"gymnazo"`` logger.  :func:`setup_logging`
gives that logger a compact one-line format; :class:`MetricsLogger`
appends structured records (one JSON object per line) for later
analysis.

Usage::

    from gymnazo.metrics import MetricsLogger, setup_logging

    setup_logging()
    with MetricsLogger("runs/dqn/metrics.jsonl") as metrics:
        metrics.write({"step": 1000, "loss": 0.42, "episode_return": 195.0})
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import IO, Any

import jax.numpy as jnp
import numpy as np

LOGGER_NAME = "gymnazo"

# ---------------------------------------------------------------------------
# Structured console logging
# ---------------------------------------------------------------------------

_LEVEL_ABBREV = {
    logging.DEBUG: "D",
    logging.INFO: "I",
    logging.WARNING: "W",
    logging.ERROR: "E",
    logging.CRITICAL: "C",
}


class _CompactFormatter(logging.Formatter):
    """Abbreviated level + millisecond timestamp + logger name.

    Example output::

        W 2026-02-15 14:30:22.123 [gymnazo.wrappers.common] Overriding max_episode_steps
    """

    def format(self, record: logging.LogRecord) -> str:
        lvl = _LEVEL_ABBREV.get(record.levelno, "?")
        ts = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        ms = int(record.msecs)
        msg = record.getMessage()
        line = f"{lvl} {ts}.{ms:03d} [{record.name}] {msg}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: int = logging.INFO) -> None:
    """Attach a compact stream handler to the ``gymnazo`` logger.

    Calling it again replaces the handler instead of stacking a second
    one, so scripts and notebooks may call it unconditionally.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for h in logger.handlers[:]:
        logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(_CompactFormatter())
    logger.addHandler(handler)
    logger.propagate = False


def log_step_progress(
    step: int,
    total_steps: int,
    metrics: dict[str, Any] | None = None,
    logger_name: str = LOGGER_NAME,
) -> None:
    """Log a one-line training progress message.

    Example output::

        I 2026-02-15 14:30:22.123 [gymnazo] step 5000/100000 (5.0%) | loss=0.42 episode_return=195
    """
    pct = 100.0 * step / total_steps if total_steps > 0 else 0.0
    parts = [f"step {step}/{total_steps} ({pct:.1f}%)"]
    if metrics:
        kv = " ".join(
            _format_metric(k, _to_python(v))
            for k, v in metrics.items()
            if k not in ("step", "wall_time")
        )
        if kv:
            parts.append(kv)
    logging.getLogger(logger_name).info(" | ".join(parts))


def _format_metric(name: str, value: Any) -> str:
    if isinstance(value, float):
        return f"{name}={value:.4g}"
    return f"{name}={value}"


# ---------------------------------------------------------------------------
# JSONL metrics
# ---------------------------------------------------------------------------


class MetricsLogger:
    """Append-only JSONL writer.

    Parameters
    ----------
    path:
        Path to the JSONL file.  Parent directories are created
        automatically and existing content is kept.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: IO[str] | None = open(self._path, "a")  # noqa: SIM115
        self._start_time = time.monotonic()

    def write(self, record: dict[str, Any]) -> None:
        """Write one record as a JSON line.

        Adds ``wall_time`` (seconds since the logger was created) unless
        the record already has one.  JAX/numpy scalars become plain
        Python numbers.
        """
        if self._file is None:
            raise ValueError(f"MetricsLogger({self._path}) is closed")
        row = {k: _to_python(v) for k, v in record.items()}
        if "wall_time" not in row:
            row["wall_time"] = round(time.monotonic() - self._start_time, 3)
        self._file.write(json.dumps(row, default=str) + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> MetricsLogger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MetricsLogger({self._path})"


def read_metrics(path: str | Path) -> list[dict[str, Any]]:
    """Read all records from a JSONL metrics file (``[]`` if missing)."""
    p = Path(path)
    if not p.exists():
        return []
    return [json.loads(line) for line in p.read_text().splitlines() if line.strip()]


def _to_python(val: Any) -> Any:
    """Convert JAX/numpy scalars to plain Python types for JSON."""
    if isinstance(val, (jnp.ndarray, np.ndarray)):
        return val.item() if val.size == 1 else val.tolist()
    if isinstance(val, (np.integer, np.floating, np.bool_)):
        return val.item()
    return val
