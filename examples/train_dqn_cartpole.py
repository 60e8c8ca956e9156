"""Train DQN on CartPole-v1 and evaluate the greedy policy."""

from gymnazo.algorithms.dqn import DQNConfig
from gymnazo.envs import make
from gymnazo.metrics import setup_logging
from gymnazo.runner import RunnerConfig, evaluate, greedy_policy, train_dqn


def main() -> None:
    setup_logging()

    config = DQNConfig(
        hidden_sizes=(128, 128),
        lr=1e-3,
        gamma=0.99,
        batch_size=64,
        epsilon_start=1.0,
        epsilon_end=0.01,
        epsilon_decay_steps=20_000,
        target_update_freq=1_000,
    )
    runner_config = RunnerConfig(
        total_timesteps=100_000,
        buffer_size=50_000,
        warmup_steps=1_000,
        eval_every=10_000,
        metrics_path="runs/dqn_cartpole/metrics.jsonl",
        checkpoint_dir="runs/dqn_cartpole/ckpt",
        seed=42,
    )
    result = train_dqn(
        make("CartPole-v1"),
        dqn_config=config,
        runner_config=runner_config,
        eval_env=make("CartPole-v1"),
    )

    final = evaluate(
        make("CartPole-v1"),
        greedy_policy(result.agent_state, config),
        n_episodes=20,
        seed=1234,
    )
    print(f"Training complete. Greedy return: {final.mean_return:.1f} +/- {final.std_return:.1f}")


if __name__ == "__main__":
    main()
