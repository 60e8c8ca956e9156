import numpy as np
import pytest

from gymnazo.envs import Blackjack, CliffWalking, Taxi, make
from gymnazo.envs.blackjack import HIT, STICK, is_bust, is_natural, score, sum_hand, usable_ace
from gymnazo.envs.cliff_walking import DOWN, GOAL_STATE, LEFT, RIGHT, START_STATE, UP
from gymnazo.envs.taxi import (
    DROPOFF,
    EAST,
    IN_TAXI,
    NORTH,
    PICKUP,
    SOUTH,
    WEST,
    decode,
    encode,
)
from gymnazo.error import InvalidAction, ResetNeeded


class TestCliffWalking:
    def test_reset(self):
        env = CliffWalking()
        obs, info = env.reset(seed=0)
        assert int(obs) == START_STATE == 36
        assert info == {"prob": 1.0}
        assert env.observation_space.n == 48
        assert env.action_space.n == 4

    def test_cliff_sends_back_to_start(self):
        env = CliffWalking()
        env.reset(seed=0)
        obs, reward, terminated, truncated, _ = env.step(RIGHT)
        assert int(obs) == START_STATE
        assert reward == -100.0
        assert not terminated and not truncated

    def test_safe_path_reaches_goal(self):
        env = CliffWalking()
        env.reset(seed=0)
        total = 0.0
        for action in [UP] + [RIGHT] * 11 + [DOWN]:
            obs, reward, terminated, _, _ = env.step(action)
            total += reward
        assert int(obs) == GOAL_STATE
        assert terminated
        assert total == -13.0
        with pytest.raises(ResetNeeded):
            env.step(UP)

    def test_edges_clamp(self):
        env = CliffWalking()
        env.reset(seed=0)
        obs, reward, _, _, _ = env.step(LEFT)
        assert int(obs) == START_STATE
        assert reward == -1.0

    def test_slippery_table(self):
        env = CliffWalking(is_slippery=True)
        outcomes = env.P[START_STATE][UP]
        assert len(outcomes) == 3
        assert all(t.prob == pytest.approx(1.0 / 3.0) for t in outcomes)
        rewards = sorted(t.reward for t in outcomes)
        assert rewards == [-100.0, -1.0, -1.0]

    def test_slippery_is_seeded(self):
        def rollout(seed):
            env = CliffWalking(is_slippery=True)
            env.reset(seed=seed)
            return [int(env.step(UP)[0]) for _ in range(10)]

        assert rollout(4) == rollout(4)

    def test_invalid_action(self):
        env = CliffWalking()
        env.reset(seed=0)
        with pytest.raises(InvalidAction):
            env.step(4)

    def test_ansi_render(self):
        env = CliffWalking(render_mode="ansi")
        env.reset(seed=0)
        text = env.render()
        lines = text.splitlines()
        assert len(lines) == 4
        assert lines[3].startswith(" x ")
        assert " C " in lines[3] and lines[3].endswith(" G ")

    def test_registered(self):
        env = make("CliffWalking-v1")
        assert isinstance(env.unwrapped, CliffWalking)
        obs, _ = env.reset(seed=0)
        assert int(obs) == START_STATE


class TestTaxiEncoding:
    def test_encode_decode_roundtrip(self):
        for state in range(500):
            assert encode(*decode(state)) == state

    def test_initial_distribution(self):
        env = Taxi()
        support = np.flatnonzero(env.initial_state_distrib)
        # 25 taxi cells x 4 passenger stands x 3 other destinations
        assert len(support) == 300
        assert env.initial_state_distrib.sum() == pytest.approx(1.0)
        for state in support:
            _, _, pass_loc, dest = decode(int(state))
            assert pass_loc < IN_TAXI and pass_loc != dest


class TestTaxiDynamics:
    def test_reset_is_seeded(self):
        obs_a, info = Taxi().reset(seed=7)
        obs_b, _ = Taxi().reset(seed=7)
        assert int(obs_a) == int(obs_b)
        _, _, pass_loc, dest = decode(int(obs_a))
        assert pass_loc != dest and pass_loc < IN_TAXI
        assert info["prob"] == 1.0
        assert info["action_mask"].dtype == np.int8

    def test_pickup_and_dropoff(self):
        env = Taxi()
        env.reset(seed=0)
        env.s = encode(0, 4, 1, 2)  # taxi and passenger at G, destination Y
        obs, reward, terminated, _, info = env.step(PICKUP)
        assert int(obs) == encode(0, 4, IN_TAXI, 2)
        assert reward == -1.0 and not terminated
        assert info["action_mask"][DROPOFF] == 1

        env.s = encode(4, 0, IN_TAXI, 2)
        obs, reward, terminated, _, _ = env.step(DROPOFF)
        assert int(obs) == encode(4, 0, 2, 2)
        assert reward == 20.0
        assert terminated

    def test_dropoff_at_other_stand(self):
        env = Taxi()
        env.reset(seed=0)
        env.s = encode(0, 0, IN_TAXI, 1)
        obs, reward, terminated, _, _ = env.step(DROPOFF)
        assert int(obs) == encode(0, 0, 0, 1)
        assert reward == -1.0 and not terminated

    def test_illegal_actions(self):
        env = Taxi()
        env.reset(seed=0)
        env.s = encode(2, 2, 0, 1)
        _, reward, _, _, _ = env.step(PICKUP)
        assert reward == -10.0
        _, reward, terminated, _, _ = env.step(DROPOFF)
        assert reward == -10.0 and not terminated

    def test_walls(self):
        env = Taxi()
        # wall between columns 1 and 2 on the top row
        assert env.P[encode(0, 1, 0, 1)][EAST][0].next_state == encode(0, 1, 0, 1)
        assert env.P[encode(0, 0, 0, 1)][EAST][0].next_state == encode(0, 1, 0, 1)
        assert env.P[encode(0, 0, 0, 1)][WEST][0].next_state == encode(0, 0, 0, 1)

    def test_action_mask(self):
        env = Taxi()
        mask = env.action_mask(encode(0, 0, 0, 1))
        np.testing.assert_array_equal(mask, [1, 0, 1, 0, 1, 0])
        mask = env.action_mask(encode(2, 2, IN_TAXI, 1))
        assert mask[NORTH] == 1 and mask[SOUTH] == 1
        assert mask[PICKUP] == 0 and mask[DROPOFF] == 0

    def test_rainy_table(self):
        env = Taxi(is_rainy=True)
        outcomes = env.P[encode(2, 2, 0, 1)][SOUTH]
        assert sorted(t.prob for t in outcomes) == pytest.approx([0.1, 0.1, 0.8])
        targets = {decode(t.next_state)[:2] for t in outcomes}
        assert targets == {(3, 2), (2, 1), (2, 3)}
        assert len(env.P[encode(2, 2, 0, 1)][PICKUP]) == 1

    def test_fickle_passenger_changes_destination(self):
        env = Taxi(fickle_passenger=True)
        env.reset(seed=0)
        env.fickle_step = True
        env.s = encode(2, 2, IN_TAXI, 1)
        obs, _, _, _, _ = env.step(SOUTH)
        row, col, pass_loc, dest = decode(int(obs))
        assert (row, col, pass_loc) == (3, 2, IN_TAXI)
        assert dest != 1
        assert not env.fickle_step

    def test_invalid_action(self):
        env = Taxi()
        env.reset(seed=0)
        with pytest.raises(InvalidAction):
            env.step(6)

    def test_render(self):
        env = Taxi(render_mode="ansi")
        env.reset(seed=0)
        env.s = encode(2, 2, 0, 1)
        text = env.render()
        assert "T" in text and "P" in text and "D" in text

    def test_registered_with_time_limit(self):
        env = make("Taxi-v3")
        assert env.spec.max_episode_steps == 200
        env.reset(seed=0)
        truncated = False
        for _ in range(200):
            _, _, terminated, truncated, _ = env.step(NORTH)
            if terminated or truncated:
                break
        assert truncated


class TestBlackjackHands:
    def test_hand_values(self):
        assert sum_hand([1, 5]) == 16 and usable_ace([1, 5])
        assert sum_hand([1, 5, 10]) == 16 and not usable_ace([1, 5, 10])
        assert is_natural([10, 1]) and not is_natural([10, 1, 10])
        assert is_bust([10, 10, 5]) and score([10, 10, 5]) == 0
        assert score([10, 9]) == 19


class TestBlackjack:
    def test_reset(self):
        env = Blackjack()
        obs, info = env.reset(seed=0)
        assert env.observation_space.contains(obs)
        assert int(obs[0]) >= 12
        assert 1 <= int(obs[1]) <= 10
        assert info == {}

    def test_reset_is_seeded(self):
        a, _ = Blackjack().reset(seed=3)
        b, _ = Blackjack().reset(seed=3)
        assert [int(x) for x in a] == [int(x) for x in b]

    def test_stick_ends_episode(self):
        env = Blackjack()
        env.reset(seed=0)
        obs, reward, terminated, truncated, _ = env.step(STICK)
        assert terminated and not truncated
        assert reward in (-1.0, 0.0, 1.0)
        with pytest.raises(ResetNeeded):
            env.step(HIT)

    def test_hitting_eventually_busts(self):
        env = Blackjack()
        env.reset(seed=0)
        terminated = False
        while not terminated:
            obs, reward, terminated, _, _ = env.step(HIT)
        assert reward == -1.0
        assert int(obs[0]) > 21

    def test_win_on_stick(self):
        env = Blackjack()
        env.reset(seed=0)
        env.player, env.dealer = [10, 10], [10, 9]
        _, reward, terminated, _, _ = env.step(STICK)
        assert terminated and reward == 1.0

    @pytest.mark.parametrize(
        "natural,sab,dealer,expected",
        [
            (False, False, [10, 9], 1.0),
            (True, False, [10, 9], 1.5),
            (True, True, [10, 9], 1.0),
            (False, True, [1, 10], 0.0),
        ],
    )
    def test_natural_payouts(self, natural, sab, dealer, expected):
        env = Blackjack(natural=natural, sab=sab)
        env.reset(seed=0)
        env.player, env.dealer = [1, 10], dealer
        _, reward, _, _, _ = env.step(STICK)
        assert reward == expected

    def test_invalid_action(self):
        env = Blackjack()
        env.reset(seed=0)
        with pytest.raises(InvalidAction):
            env.step(2)

    def test_registered_sab_rules(self):
        env = make("Blackjack-v1")
        assert env.unwrapped.sab and not env.unwrapped.natural
        obs, _ = env.reset(seed=0)
        assert env.observation_space.contains(obs)
        env.step(STICK)
