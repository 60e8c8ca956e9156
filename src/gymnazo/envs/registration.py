"""Environment registry: map string ids to constructors and default wrappers.

Ids have the form ``[namespace/]Name[-vN]``::

    register("MyTeam/Maze-v2", entry_point="my_pkg.maze:Maze", max_episode_steps=300)
    env = make("MyTeam/Maze-v2", size=9)   # kwargs go to Maze(...)

:func:`make` builds the base environment and wraps it as
``TimeLimit(OrderEnforcing(PassiveEnvChecker(env)))`` according to the
registered :class:`EnvSpec`.
"""

from __future__ import annotations

import dataclasses
import importlib
import logging
import re
from collections.abc import Callable
from typing import Any

from gymnazo.core import Env
from gymnazo.error import RegistrationError, UnregisteredEnv
from gymnazo.wrappers.common import OrderEnforcing, PassiveEnvChecker, TimeLimit

logger = logging.getLogger(__name__)

ENV_ID_RE = re.compile(
    r"^(?:(?P<namespace>[\w:-]+)/)?(?P<name>[\w:.-]+?)(?:-v(?P<version>\d+))?$"
)


def parse_env_id(env_id: str) -> tuple[str | None, str, int | None]:
    """Split an id into ``(namespace, name, version)``.

    >>> parse_env_id("MyTeam/Maze-v2")
    ('MyTeam', 'Maze', 2)
    """
    match = ENV_ID_RE.fullmatch(env_id)
    if match is None:
        raise RegistrationError(
            f"Malformed environment id {env_id!r}; expected [namespace/]Name[-vN]"
        )
    namespace, name, version = match.group("namespace", "name", "version")
    return namespace, name, int(version) if version is not None else None


@dataclasses.dataclass(frozen=True)
class EnvSpec:
    """Everything :func:`make` needs to build one registered environment."""

    id: str
    entry_point: Callable[..., Env] | str
    reward_threshold: float | None = None
    nondeterministic: bool = False
    max_episode_steps: int | None = None
    order_enforce: bool = True
    disable_env_checker: bool = False
    kwargs: dict[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        parse_env_id(self.id)

    @property
    def namespace(self) -> str | None:
        return parse_env_id(self.id)[0]

    @property
    def name(self) -> str:
        return parse_env_id(self.id)[1]

    @property
    def version(self) -> int | None:
        return parse_env_id(self.id)[2]

    def make(self, **kwargs: Any) -> Env:
        return make(self, **kwargs)


registry: dict[str, EnvSpec] = {}


def load_entry_point(entry_point: Callable[..., Env] | str) -> Callable[..., Env]:
    """Resolve ``"package.module:attr"`` strings; callables pass through."""
    if callable(entry_point):
        return entry_point
    module_name, sep, attr = entry_point.partition(":")
    if not sep:
        raise RegistrationError(f"Entry point {entry_point!r} must look like 'module:attr'")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


def register(
    id: str,
    entry_point: Callable[..., Env] | str,
    *,
    reward_threshold: float | None = None,
    nondeterministic: bool = False,
    max_episode_steps: int | None = None,
    order_enforce: bool = True,
    disable_env_checker: bool = False,
    kwargs: dict[str, Any] | None = None,
) -> None:
    """Register an environment under ``id``.

    Re-registering an existing id replaces it and logs a warning.
    """
    if max_episode_steps is not None and max_episode_steps <= 0:
        raise RegistrationError(
            f"max_episode_steps must be positive, got {max_episode_steps} for {id!r}"
        )
    new_spec = EnvSpec(
        id=id,
        entry_point=entry_point,
        reward_threshold=reward_threshold,
        nondeterministic=nondeterministic,
        max_episode_steps=max_episode_steps,
        order_enforce=order_enforce,
        disable_env_checker=disable_env_checker,
        kwargs=dict(kwargs or {}),
    )
    if id in registry:
        logger.warning("Overriding environment %s already in registry.", id)
    registry[id] = new_spec


def spec(env_id: str) -> EnvSpec:
    """Look up the registered :class:`EnvSpec` for ``env_id``."""
    try:
        return registry[env_id]
    except KeyError:
        namespace, name, _ = parse_env_id(env_id)
        versions = sorted(
            s.id for s in registry.values() if s.namespace == namespace and s.name == name
        )
        hint = f" Registered versions: {versions}." if versions else ""
        raise UnregisteredEnv(f"No registered environment with id {env_id!r}.{hint}") from None


def make(
    id: str | EnvSpec,
    max_episode_steps: int | None = None,
    disable_env_checker: bool | None = None,
    render_mode: str | None = None,
    **kwargs: Any,
) -> Env:
    """Build a registered environment with its standard wrappers.

    Args:
        id: registered id or an :class:`EnvSpec`.
        max_episode_steps: overrides the registered step limit.
        disable_env_checker: overrides whether ``PassiveEnvChecker`` is applied.
        render_mode: forwarded to the environment constructor.
        **kwargs: forwarded to the environment constructor, on top of
            the registered ``kwargs``.
    """
    env_spec = id if isinstance(id, EnvSpec) else spec(id)
    env_kwargs = {**env_spec.kwargs, **kwargs}
    if render_mode is not None:
        env_kwargs["render_mode"] = render_mode

    env_creator = load_entry_point(env_spec.entry_point)
    env = env_creator(**env_kwargs)

    if disable_env_checker is None:
        disable_env_checker = env_spec.disable_env_checker
    if max_episode_steps is None:
        max_episode_steps = env_spec.max_episode_steps

    env.unwrapped.spec = dataclasses.replace(
        env_spec,
        kwargs=env_kwargs,
        max_episode_steps=max_episode_steps,
        disable_env_checker=disable_env_checker,
    )

    if not disable_env_checker:
        env = PassiveEnvChecker(env)
    if env_spec.order_enforce:
        env = OrderEnforcing(env)
    if max_episode_steps is not None:
        env = TimeLimit(env, max_episode_steps)
    return env


def pprint_registry(num_cols: int = 3, exclude_namespaces: list[str] | None = None) -> str:
    """Registered ids grouped by namespace, laid out in columns.

    Returns the text so callers can log or print it.
    """
    groups: dict[str, list[str]] = {}
    for env_id, env_spec in sorted(registry.items()):
        namespace = env_spec.namespace or "builtin"
        if exclude_namespaces and namespace in exclude_namespaces:
            continue
        groups.setdefault(namespace, []).append(env_id)

    lines = []
    for namespace, ids in groups.items():
        lines.append(f"===== {namespace} =====")
        width = max(len(env_id) for env_id in ids) + 2
        for start in range(0, len(ids), num_cols):
            lines.append("".join(env_id.ljust(width) for env_id in ids[start:start + num_cols]).rstrip())
        lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Built-in environments
# ---------------------------------------------------------------------------

register(
    "FrozenLake-v1",
    entry_point="gymnazo.envs.frozen_lake:FrozenLake",
    max_episode_steps=100,
    reward_threshold=0.70,
)
register(
    "FrozenLake8x8-v1",
    entry_point="gymnazo.envs.frozen_lake:FrozenLake",
    kwargs={"map_name": "8x8"},
    max_episode_steps=200,
    reward_threshold=0.85,
)
register(
    "CartPole-v1",
    entry_point="gymnazo.envs.cart_pole:CartPole",
    max_episode_steps=500,
    reward_threshold=475.0,
)
register(
    "MountainCar-v0",
    entry_point="gymnazo.envs.mountain_car:MountainCar",
    max_episode_steps=200,
    reward_threshold=-110.0,
)
register(
    "MountainCarContinuous-v0",
    entry_point="gymnazo.envs.mountain_car_continuous:MountainCarContinuous",
    max_episode_steps=999,
    reward_threshold=90.0,
)
register(
    "Pendulum-v1",
    entry_point="gymnazo.envs.pendulum:Pendulum",
    max_episode_steps=200,
)
register(
    "Acrobot-v1",
    entry_point="gymnazo.envs.acrobot:Acrobot",
    max_episode_steps=500,
    reward_threshold=-100.0,
)
register(
    "PixelGridWorld-v0",
    entry_point="gymnazo.envs.pixel_grid_world:PixelGridWorld",
    max_episode_steps=100,
)
register(
    "CliffWalking-v1",
    entry_point="gymnazo.envs.cliff_walking:CliffWalking",
)
register(
    "Taxi-v3",
    entry_point="gymnazo.envs.taxi:Taxi",
    max_episode_steps=200,
    reward_threshold=8.0,
)
register(
    "Blackjack-v1",
    entry_point="gymnazo.envs.blackjack:Blackjack",
    kwargs={"sab": True, "natural": False},
)
