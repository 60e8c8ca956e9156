"""Built-in environments and the environment registry.

Quick start::

    from gymnazo.envs import make

    env = make("CartPole-v1")
    obs, info = env.reset(seed=0)
    obs, reward, terminated, truncated, info = env.step(1)
"""

from gymnazo.envs.acrobot import Acrobot, AcrobotParams, AcrobotState
from gymnazo.envs.base import EnvParams, EnvState, FunctionalEnv
from gymnazo.envs.blackjack import Blackjack
from gymnazo.envs.cart_pole import CartPole, CartPoleParams, CartPoleState
from gymnazo.envs.cliff_walking import CliffWalking
from gymnazo.envs.frozen_lake import FrozenLake, FrozenLakeParams, generate_random_map
from gymnazo.envs.mountain_car import MountainCar, MountainCarParams, MountainCarState
from gymnazo.envs.mountain_car_continuous import MountainCarContinuous, MountainCarContinuousParams
from gymnazo.envs.pendulum import Pendulum, PendulumParams, PendulumState
from gymnazo.envs.pixel_grid_world import PixelGridWorld, PixelGridWorldParams
from gymnazo.envs.registration import (
    EnvSpec,
    make,
    pprint_registry,
    register,
    registry,
    spec,
)
from gymnazo.envs.taxi import Taxi

__all__ = [
    # Base
    "EnvParams",
    "EnvState",
    "FunctionalEnv",
    # Environments
    "Acrobot",
    "AcrobotParams",
    "AcrobotState",
    "Blackjack",
    "CartPole",
    "CartPoleParams",
    "CartPoleState",
    "CliffWalking",
    "FrozenLake",
    "FrozenLakeParams",
    "generate_random_map",
    "MountainCar",
    "MountainCarContinuous",
    "MountainCarContinuousParams",
    "MountainCarParams",
    "MountainCarState",
    "Pendulum",
    "PendulumParams",
    "PendulumState",
    "PixelGridWorld",
    "PixelGridWorldParams",
    "Taxi",
    # Registry
    "EnvSpec",
    "make",
    "pprint_registry",
    "register",
    "registry",
    "spec",
]
