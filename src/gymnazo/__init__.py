"""gymnazo: reinforcement-learning environments on JAX."""

from gymnazo import error, spaces, vector, wrappers
from gymnazo.checkpoint import load_checkpoint, load_eqx, save_checkpoint, save_eqx
from gymnazo.core import ActionWrapper, Env, ObservationWrapper, RewardWrapper, Wrapper
from gymnazo.envs.registration import EnvSpec, make, pprint_registry, register, registry, spec
from gymnazo.metrics import MetricsLogger, setup_logging
from gymnazo.seeding import fold_in, make_rng, split_key, split_keys
from gymnazo.types import Transition

__version__ = "0.1.0"

__all__ = [
    "ActionWrapper",
    "Env",
    "EnvSpec",
    "MetricsLogger",
    "ObservationWrapper",
    "RewardWrapper",
    "Transition",
    "Wrapper",
    "error",
    "fold_in",
    "load_checkpoint",
    "load_eqx",
    "make",
    "make_rng",
    "pprint_registry",
    "register",
    "registry",
    "save_checkpoint",
    "save_eqx",
    "setup_logging",
    "spaces",
    "spec",
    "split_key",
    "split_keys",
    "vector",
]
