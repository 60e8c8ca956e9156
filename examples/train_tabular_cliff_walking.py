"""Q-learning vs SARSA on CliffWalking.

Q-learning learns the short path along the cliff edge; SARSA, which
accounts for its own exploration, tends to learn the safer path one row
up.  Both greedy policies reach the goal.
"""

from gymnazo.algorithms.tabular import TabularConfig
from gymnazo.envs import make
from gymnazo.metrics import setup_logging
from gymnazo.runner import RunnerConfig, evaluate, table_policy, train_tabular


def make_env():
    return make("CliffWalking-v1", max_episode_steps=200)


def main() -> None:
    setup_logging()

    for rule in ("q_learning", "sarsa"):
        config = TabularConfig(update_rule=rule, lr=0.5, gamma=1.0, epsilon_start=0.1, epsilon_decay=1.0)
        result = train_tabular(
            make_env(),
            tabular_config=config,
            runner_config=RunnerConfig(total_timesteps=20_000, log_interval=5_000, seed=0),
        )
        env = make_env()
        policy = table_policy(result.agent_state, env.observation_space, config)
        final = evaluate(env, policy, n_episodes=1, seed=0)
        print(f"{rule}: greedy return {final.mean_return:.0f} in {final.mean_length:.0f} steps")


if __name__ == "__main__":
    main()
