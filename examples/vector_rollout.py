"""Roll out random actions in several CartPoles stepped in lockstep."""

import jax
import numpy as np

from gymnazo.envs import make
from gymnazo.vector import SyncVectorEnv
from gymnazo.wrappers import RecordEpisodeStatistics


def main() -> None:
    envs = SyncVectorEnv([lambda: RecordEpisodeStatistics(make("CartPole-v1")) for _ in range(4)])
    obs, _ = envs.reset(seed=0)
    key = jax.random.PRNGKey(0)

    finished = []
    with envs:
        for _ in range(500):
            key, sample_key = jax.random.split(key)
            actions = np.asarray(envs.action_space.sample(sample_key))
            obs, rewards, terminated, truncated, infos = envs.step(actions)
            if "final_info" in infos:
                episode = infos["final_info"].get("episode")
                if episode is not None:
                    mask = infos["final_info"]["_episode"]
                    finished.extend(np.asarray(episode["r"])[mask].tolist())

    print(f"{len(finished)} episodes, mean return {np.mean(finished):.1f}")


if __name__ == "__main__":
    main()
