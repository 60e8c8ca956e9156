"""Train DQN on a deterministic FrozenLake with one-hot observations.

``FlattenObservation`` turns the ``Discrete(16)`` tile index into a
length-16 one-hot vector, which the MLP Q-network can consume.
"""

from gymnazo.algorithms.dqn import DQNConfig
from gymnazo.envs import make
from gymnazo.metrics import setup_logging
from gymnazo.runner import RunnerConfig, evaluate, greedy_policy, train_dqn
from gymnazo.wrappers import FlattenObservation


def make_env():
    return FlattenObservation(make("FrozenLake-v1", is_slippery=False))


def main() -> None:
    setup_logging()

    config = DQNConfig(
        hidden_sizes=(64, 64),
        lr=5e-4,
        batch_size=64,
        epsilon_decay_steps=10_000,
        target_update_freq=500,
    )
    result = train_dqn(
        make_env(),
        dqn_config=config,
        runner_config=RunnerConfig(total_timesteps=20_000, warmup_steps=500, seed=0),
    )

    final = evaluate(make_env(), greedy_policy(result.agent_state, config), n_episodes=10, seed=0)
    print(f"Training complete. Success rate: {final.mean_return:.2f}")


if __name__ == "__main__":
    main()
