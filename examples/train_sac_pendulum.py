"""Train SAC on Pendulum with a hand-written off-policy loop.

Shows the pieces the runner composes: an ``AutoReset`` env whose
finished episodes report ``final_observation``, a replay buffer that
stores ``terminated`` (not ``truncated``), and jitted act/update calls.

Usage::

    python examples/train_sac_pendulum.py
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.algorithms.sac import SAC, SACConfig
from gymnazo.dataprotocol import ReplayBuffer
from gymnazo.envs import make
from gymnazo.runner import deterministic_policy, evaluate
from gymnazo.wrappers import AutoReset, AutoresetMode


def main() -> None:
    seed = 42
    total_steps = 50_000
    eval_every = 5_000
    min_buffer_size = 1_000

    env = AutoReset(make("Pendulum-v1"), AutoresetMode.SAME_STEP)
    config = SACConfig(hidden_sizes=(256, 256), batch_size=256).with_action_bounds(
        env.action_space.low, env.action_space.high
    )

    state = SAC.init(jax.random.PRNGKey(seed), obs_shape=(3,), action_dim=1, config=config)
    buffer = ReplayBuffer(
        capacity=50_000, obs_shape=(3,), action_shape=(1,), action_dtype=np.float32, seed=seed
    )

    obs, _ = env.reset(seed=seed)
    for step in range(1, total_steps + 1):
        action, state = SAC.act(state, jnp.asarray(obs), config=config, explore=True)
        action = np.asarray(action)
        next_obs, reward, terminated, truncated, info = env.step(action)

        real_next_obs = info["final_observation"] if terminated or truncated else next_obs
        buffer.push(obs, action, reward, real_next_obs, terminated)
        obs = next_obs

        if len(buffer) >= min_buffer_size:
            state, metrics = SAC.update(state, buffer.sample(config.batch_size), config=config)

        if step % eval_every == 0:
            result = evaluate(
                make("Pendulum-v1"),
                deterministic_policy(state, config, (1,)),
                n_episodes=5,
                seed=step,
            )
            alpha = float(jnp.exp(state.log_alpha))
            print(f"Step {step:6d} | alpha={alpha:.3f} | eval_return={result.mean_return:.1f}")

    print("Training complete.")


if __name__ == "__main__":
    main()
