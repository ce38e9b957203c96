"""Tests for turn order and match end detection."""
from src.arena.enums import MatchResult, Phase, Team
from src.arena.models import Position
from src.arena.turns import advance_turn, calc_turn_order, check_result, commit_result, first_turn


class TestCalcTurnOrder:
    """Tests for per-round ordering."""

    def test_speed_descending(self, make_unit, scripted_rng):
        units = [
            make_unit("slow", Team.PLAYER, Position(0, 0), speed=5),
            make_unit("fast", Team.ENEMY, Position(0, 5), speed=30),
            make_unit("mid", Team.PLAYER, Position(1, 0), speed=15),
        ]
        assert calc_turn_order(units, scripted_rng()) == ("fast", "mid", "slow")

    def test_player_wins_speed_ties(self, make_unit, scripted_rng):
        units = [
            make_unit("e", Team.ENEMY, Position(0, 5), speed=20),
            make_unit("p", Team.PLAYER, Position(0, 0), speed=20),
        ]
        # Random keys favour the enemy, but team priority comes first
        assert calc_turn_order(units, scripted_rng([0.1, 0.9])) == ("p", "e")

    def test_same_team_ties_use_random_key(self, make_unit, scripted_rng):
        units = [
            make_unit("a", Team.PLAYER, Position(0, 0), speed=20),
            make_unit("b", Team.PLAYER, Position(1, 0), speed=20),
        ]
        assert calc_turn_order(units, scripted_rng([0.9, 0.1])) == ("b", "a")
        assert calc_turn_order(units, scripted_rng([0.1, 0.9])) == ("a", "b")

    def test_dead_units_excluded(self, make_unit, scripted_rng):
        units = [
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("dead", Team.ENEMY, Position(0, 5), hp=0, max_hp=100, alive=False),
        ]
        assert calc_turn_order(units, scripted_rng()) == ("p",)


class TestCheckResult:
    """Tests for win/lose detection."""

    def test_in_progress(self, make_unit, build_state):
        state = build_state([
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("e", Team.ENEMY, Position(0, 5)),
        ])
        assert check_result(state) == MatchResult.NONE

    def test_win(self, make_unit, build_state):
        state = build_state([
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("e", Team.ENEMY, Position(0, 5), hp=0, max_hp=100, alive=False),
        ])
        assert check_result(state) == MatchResult.WIN

    def test_lose(self, make_unit, build_state):
        state = build_state([
            make_unit("p", Team.PLAYER, Position(0, 0), hp=0, max_hp=100, alive=False),
            make_unit("e", Team.ENEMY, Position(0, 5)),
        ])
        assert check_result(state) == MatchResult.LOSE

    def test_enemy_side_checked_first(self, make_unit, build_state):
        state = build_state([
            make_unit("p", Team.PLAYER, Position(0, 0), hp=0, max_hp=100, alive=False),
            make_unit("e", Team.ENEMY, Position(0, 5), hp=0, max_hp=100, alive=False),
        ])
        assert check_result(state) == MatchResult.WIN

    def test_commit_result_is_terminal(self, make_unit, build_state):
        state = build_state([
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("e", Team.ENEMY, Position(0, 5), hp=0, max_hp=100, alive=False),
        ])

        finished = commit_result(state)

        assert finished.phase == Phase.RESULT
        assert finished.result == MatchResult.WIN
        assert commit_result(finished) is finished


class TestAdvanceTurn:
    """Tests for moving between turns and rounds."""

    def test_next_index(self, make_unit, build_state, scripted_rng):
        state = build_state([
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("e", Team.ENEMY, Position(0, 5)),
        ])

        advanced = advance_turn(state, scripted_rng())

        assert advanced.current_turn_index == 1
        assert advanced.round == 1
        assert advanced.current_unit().id == "e"

    def test_new_round_recomputes_order(self, make_unit, build_state, scripted_rng):
        p = make_unit("p", Team.PLAYER, Position(0, 0), speed=10)
        e = make_unit("e", Team.ENEMY, Position(0, 5), speed=20)
        state = build_state([p, e], turn_order=("p", "e"), current_turn_index=1)

        advanced = advance_turn(state, scripted_rng())

        assert advanced.round == 2
        assert advanced.current_turn_index == 0
        assert advanced.turn_order == ("e", "p")

    def test_skips_dead_units(self, make_unit, build_state, scripted_rng):
        units = [
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("e1", Team.ENEMY, Position(0, 5), hp=0, max_hp=100, alive=False),
            make_unit("e2", Team.ENEMY, Position(1, 5)),
        ]
        state = build_state(units, turn_order=("p", "e1", "e2"))

        advanced = advance_turn(state, scripted_rng())

        assert advanced.current_turn_index == 2
        assert advanced.current_unit().id == "e2"

    def test_dead_tail_rolls_into_next_round(self, make_unit, build_state, scripted_rng):
        units = [
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("e1", Team.ENEMY, Position(1, 5)),
            make_unit("e2", Team.ENEMY, Position(0, 5), hp=0, max_hp=100, alive=False),
        ]
        state = build_state(units, turn_order=("p", "e1", "e2"), current_turn_index=1)

        advanced = advance_turn(state, scripted_rng())

        assert advanced.round == 2
        assert "e2" not in advanced.turn_order
        assert advanced.current_unit().alive

    def test_round_order_holds_living_ids(self, make_unit, build_state, scripted_rng):
        units = [
            make_unit("p1", Team.PLAYER, Position(0, 0), speed=12),
            make_unit("p2", Team.PLAYER, Position(1, 0), hp=0, max_hp=100, alive=False),
            make_unit("e1", Team.ENEMY, Position(0, 5), speed=18),
        ]
        state = build_state(units, turn_order=("e1", "p1"), current_turn_index=1)

        advanced = advance_turn(state, scripted_rng())

        assert set(advanced.turn_order) == {u.id for u in units if u.alive}

    def test_terminal_short_circuit(self, make_unit, build_state, scripted_rng):
        units = [
            make_unit("p", Team.PLAYER, Position(0, 0)),
            make_unit("e", Team.ENEMY, Position(0, 5), hp=0, max_hp=100, alive=False),
        ]
        state = build_state(units, turn_order=("p", "e"))

        advanced = advance_turn(state, scripted_rng())

        assert advanced.phase == Phase.RESULT
        assert advanced.current_turn_index == 0

    def test_first_turn(self, make_unit, build_state, scripted_rng):
        state = build_state([
            make_unit("p", Team.PLAYER, Position(0, 0), speed=5),
            make_unit("e", Team.ENEMY, Position(0, 5), speed=25),
        ], turn_order=(), round=7, current_turn_index=3)

        started = first_turn(state, scripted_rng())

        assert started.round == 1
        assert started.current_turn_index == 0
        assert started.turn_order == ("e", "p")
