"""Checkpointing for Equinox models and agent states.

Everything is a JAX pytree (NamedTuples, Equinox modules, optax states),
serialised with ``eqx.tree_serialise_leaves``.  Restoring needs a
template with the same structure::

    from gymnazo.checkpoint import save_checkpoint, load_checkpoint

    save_checkpoint("runs/dqn/ckpt", state, step=5000, metadata={"env_id": "CartPole-v1"})
    restored = load_checkpoint("runs/dqn/ckpt", DQN.init(key, (4,), 2, config), step=5000)
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, TypeVar

import equinox as eqx

T = TypeVar("T")

logger = logging.getLogger(__name__)

_STEP_DIR_RE = re.compile(r"^step_(\d+)$")


def save_eqx(path: str | Path, pytree: Any) -> Path:
    """Save a pytree to a single file (conventionally ``*.eqx``).

    Returns the path that was written.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    eqx.tree_serialise_leaves(str(p), pytree)
    return p


def load_eqx(path: str | Path, like: T) -> T:
    """Load a pytree saved with :func:`save_eqx`.

    ``like`` must match the saved structure (shapes, dtypes); usually a
    freshly initialised copy of the same state.
    """
    return eqx.tree_deserialise_leaves(str(path), like)


def _resolve(directory: str | Path, step: int | None) -> Path:
    d = Path(directory)
    return d / f"step_{step}" if step is not None else d


def save_checkpoint(
    directory: str | Path,
    pytree: Any,
    *,
    step: int | None = None,
    metadata: dict[str, Any] | None = None,
) -> Path:
    """Save a checkpoint directory.

    Writes ``directory/state.eqx`` (or ``directory/step_N/state.eqx`` when
    *step* is given) and, optionally, ``metadata.json`` beside it.

    Returns the checkpoint directory.
    """
    d = _resolve(directory, step)
    d.mkdir(parents=True, exist_ok=True)
    eqx.tree_serialise_leaves(str(d / "state.eqx"), pytree)

    if metadata is not None:
        (d / "metadata.json").write_text(json.dumps(metadata, indent=2, default=str) + "\n")

    logger.debug("Saved checkpoint to %s", d)
    return d


def load_checkpoint(directory: str | Path, like: T, *, step: int | None = None) -> T:
    """Load a checkpoint saved with :func:`save_checkpoint`.

    Raises ``FileNotFoundError`` if the checkpoint does not exist.
    """
    path = _resolve(directory, step) / "state.eqx"
    if not path.exists():
        raise FileNotFoundError(f"No checkpoint found at {path}")
    return eqx.tree_deserialise_leaves(str(path), like)


def load_metadata(directory: str | Path, *, step: int | None = None) -> dict[str, Any] | None:
    """Metadata saved next to a checkpoint, or ``None`` if there is none."""
    meta_path = _resolve(directory, step) / "metadata.json"
    if meta_path.exists():
        return json.loads(meta_path.read_text())
    return None


def latest_step(directory: str | Path) -> int | None:
    """Largest ``N`` among the ``step_N`` subdirectories, or ``None``."""
    d = Path(directory)
    if not d.is_dir():
        return None
    steps = [
        int(m.group(1))
        for child in d.iterdir()
        if child.is_dir() and (m := _STEP_DIR_RE.match(child.name))
    ]
    return max(steps) if steps else None
