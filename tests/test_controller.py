"""Tests for the exploration decision loop, driven with scripted oracle answers."""

import pytest

from molethief.controller import (
    ActionKind,
    ControllerAction,
    ControllerState,
    EpisodeAlreadyRunningError,
    ExplorationController,
)
from molethief.oracle import CollectOutcome, FinishOutcome, MoveOutcome, Observation
from molethief.pathfinding import BreadthFirstSearch, PathfindingStrategy
from molethief.profiles import ExplorationProfile
from molethief.session import GameSession
from molethief.world import CellKind, RelativeCell


class ScriptedStrategy(PathfindingStrategy):
    """Returns fixed paths regardless of the map."""

    name = "scripted"

    def __init__(self, target=None, frontier=None):
        self.target = target
        self.frontier = frontier
        self.calls = []

    def find_path_to_type(self, world, target_kind, start, bounds):
        self.calls.append("type")
        return self.target

    def find_path_to_unknown(self, world, start, bounds):
        self.calls.append("unknown")
        return self.frontier


def make_controller(strategy, **profile_overrides):
    session = GameSession("test", profile=ExplorationProfile(**profile_overrides))
    return ExplorationController(session, strategy)


def finish_episode(episode, outcome):
    with pytest.raises(StopIteration) as stop:
        episode.send(outcome)
    return stop.value.value


def test_finish_is_attempted_before_further_paths():
    strategy = ScriptedStrategy(target=((1, 0),), frontier=((-1, 0),))
    controller = make_controller(strategy, finish_target_count=0)
    episode = controller.episode()

    assert next(episode) == ControllerAction.observe()
    action = episode.send(Observation())

    assert action == ControllerAction.finish()
    assert strategy.calls == []
    summary = finish_episode(episode, FinishOutcome(finished=True))
    assert summary.finished is True
    assert summary.reason == "finished"
    assert summary.actions == 2
    assert controller.state == ControllerState.DONE


def test_long_target_path_loses_to_shorter_frontier():
    strategy = ScriptedStrategy(target=((1, 0),) * 8, frontier=((-1, 0),) * 3)
    controller = make_controller(strategy, change_to_unknown_threshold=5)
    episode = controller.episode()
    next(episode)

    action = episode.send(Observation())

    assert action == ControllerAction.move(-1, 0)
    assert controller.state == ControllerState.EXPLORING


def test_short_target_path_is_pursued():
    strategy = ScriptedStrategy(target=((1, 0),) * 4, frontier=((-1, 0),) * 3)
    controller = make_controller(strategy, change_to_unknown_threshold=5)
    episode = controller.episode()
    next(episode)

    assert episode.send(Observation()) == ControllerAction.move(1, 0)
    assert controller.state == ControllerState.PURSUING


def test_equal_length_frontier_does_not_win():
    strategy = ScriptedStrategy(target=((1, 0),) * 8, frontier=((-1, 0),) * 8)
    controller = make_controller(strategy, change_to_unknown_threshold=5)
    episode = controller.episode()
    next(episode)

    assert episode.send(Observation()) == ControllerAction.move(1, 0)


def test_missing_target_path_triggers_observe_unless_corners_known():
    strategy = ScriptedStrategy(target=None, frontier=((-1, 0),))
    controller = make_controller(strategy, look_confidence_threshold=1)
    episode = controller.episode()
    next(episode)

    assert episode.send(Observation()) == ControllerAction.observe()

    confident = make_controller(ScriptedStrategy(target=None, frontier=((-1, 0),)), look_confidence_threshold=1)
    episode = confident.episode()
    next(episode)
    # The (+5, +5) corner is visible, so the re-observe is skipped.
    action = episode.send(Observation(cells=[RelativeCell(x=5, y=5)]))
    assert action == ControllerAction.move(-1, 0)


def test_collects_target_on_arrival_then_finishes():
    controller = ExplorationController(GameSession("test"), BreadthFirstSearch())
    episode = controller.episode()
    next(episode)

    action = episode.send(
        Observation(
            cells=[
                RelativeCell(x=0, y=0, type_name="INFO_STARTPOS"),
                RelativeCell(x=1, y=0, type_name="COLLECTIBLE_COIN"),
            ]
        )
    )
    assert action == ControllerAction.move(1, 0)

    assert episode.send(MoveOutcome(accepted=True, dx=1, dy=0)) == ControllerAction.collect()
    assert episode.send(CollectOutcome(accepted=True)) == ControllerAction.finish()
    assert controller.collected == 1
    assert controller.session.world_map.kind_at(1, 0) == CellKind.NONE

    summary = finish_episode(episode, FinishOutcome(finished=True))
    assert summary.collected == 1
    assert summary.position == (1, 0)
    assert summary.finished is True


def test_rejected_collect_consumes_without_counting():
    controller = ExplorationController(GameSession("test"), BreadthFirstSearch())
    episode = controller.episode()
    next(episode)
    episode.send(Observation(cells=[RelativeCell(x=0, y=0), RelativeCell(x=1, y=0, type_name="COLLECTIBLE_COIN")]))
    episode.send(MoveOutcome(accepted=True, dx=1, dy=0))

    action = episode.send(CollectOutcome(accepted=False, reason="someone else took it"))

    assert action == ControllerAction.observe()
    assert controller.collected == 0
    assert controller.rejections == 1
    assert controller.session.world_map.kind_at(1, 0) == CellKind.NONE


def test_rejected_move_aborts_path_and_resyncs():
    strategy = ScriptedStrategy(target=None, frontier=((-1, 0), (-1, 0)))
    controller = make_controller(strategy, look_confidence_threshold=0)
    episode = controller.episode()
    next(episode)
    assert episode.send(Observation()) == ControllerAction.move(-1, 0)

    action = episode.send(MoveOutcome.rejected(-1, 0, "blocked"))

    assert action == ControllerAction.observe()
    assert controller.session.position == (0, 0)
    assert controller.rejections == 1

    # Still unseen after the fresh look: remembered as impassable.
    episode.send(Observation())
    assert controller.session.world_map.is_solid(-1, 0)


def test_too_many_rejections_end_the_episode():
    strategy = ScriptedStrategy(target=None, frontier=((-1, 0),))
    session = GameSession("test", profile=ExplorationProfile(look_confidence_threshold=0))
    controller = ExplorationController(session, strategy, max_consecutive_rejections=2)
    episode = controller.episode()

    actions = [next(episode)]
    actions.append(episode.send(Observation()))
    actions.append(episode.send(MoveOutcome.rejected(-1, 0, "blocked")))
    actions.append(episode.send(Observation()))
    summary = finish_episode(episode, MoveOutcome.rejected(-1, 0, "blocked"))

    assert [a.kind for a in actions] == [
        ActionKind.OBSERVE,
        ActionKind.MOVE,
        ActionKind.OBSERVE,
        ActionKind.MOVE,
    ]
    assert summary.reason == "too many rejections"
    assert summary.finished is False
    assert summary.rejections == 2


def test_failed_finish_waits_for_more_collections():
    strategy = ScriptedStrategy(target=None, frontier=((-1, 0),))
    controller = make_controller(strategy, finish_target_count=0, look_confidence_threshold=0)
    episode = controller.episode()
    next(episode)

    assert episode.send(Observation()) == ControllerAction.finish()
    assert episode.send(FinishOutcome(finished=False, reason="coins remain")) == ControllerAction.move(-1, 0)
    assert controller.state == ControllerState.EXPLORING
    # Nothing collected since the refusal: keep exploring instead of asking again.
    assert episode.send(MoveOutcome(accepted=True, dx=-1, dy=0)) == ControllerAction.move(-1, 0)


def test_exhaustion_attempts_finish():
    controller = make_controller(ScriptedStrategy(target=None, frontier=None), look_confidence_threshold=0)
    episode = controller.episode()
    next(episode)

    assert episode.send(Observation()) == ControllerAction.finish()
    summary = finish_episode(episode, FinishOutcome(finished=False, reason="1 coins remain"))

    assert summary.finished is False
    assert summary.reason == "exhausted"


def test_long_frontier_forces_finish_once_map_grew():
    strategy = ScriptedStrategy(target=None, frontier=((-1, 0),) * 4)
    controller = make_controller(strategy, finish_target_count=0, try_finish_threshold=3, look_confidence_threshold=0)
    episode = controller.episode()
    next(episode)

    assert episode.send(Observation()) == ControllerAction.finish()
    # Refused, and nothing new is known yet: walk the long frontier path.
    assert episode.send(FinishOutcome(finished=False)) == ControllerAction.move(-1, 0)

    action = episode.send(MoveOutcome(accepted=True, dx=-1, dy=0, cells=[RelativeCell(x=0, y=0)]))
    for _ in range(3):
        assert action == ControllerAction.move(-1, 0)
        action = episode.send(MoveOutcome(accepted=True, dx=-1, dy=0))

    # The map grew and the next frontier path is still long: ask again.
    assert action == ControllerAction.finish()


def test_cancel_stops_at_next_step():
    strategy = ScriptedStrategy(target=None, frontier=((-1, 0), (-1, 0)))
    controller = make_controller(strategy, look_confidence_threshold=0)
    episode = controller.episode()
    next(episode)
    episode.send(Observation())

    controller.cancel()
    summary = finish_episode(episode, MoveOutcome(accepted=True, dx=-1, dy=0))

    assert summary.reason == "cancelled"
    assert summary.position == (-1, 0)
    assert controller.running is False


def test_progress_reports_current_path():
    strategy = ScriptedStrategy(target=((1, 0), (1, 1)), frontier=None)
    controller = make_controller(strategy)
    episode = controller.episode()
    next(episode)
    episode.send(Observation(cells=[RelativeCell(x=0, y=0), RelativeCell(x=2, y=1, type_name="COLLECTIBLE_COIN")]))

    progress = controller.progress()

    assert progress.state == ControllerState.PURSUING
    assert progress.path == [(0, 0), (1, 0), (2, 1)]
    assert progress.actions == 1
    assert progress.statistics["total"] == 2


def test_episode_is_not_reentrant():
    controller = make_controller(ScriptedStrategy())
    episode = controller.episode()
    next(episode)

    with pytest.raises(EpisodeAlreadyRunningError):
        controller.episode()

    episode.close()
    assert controller.running is False
    assert next(controller.episode()) == ControllerAction.observe()


def test_reveal_walks_frontiers_without_collecting():
    controller = ExplorationController(GameSession("test"), BreadthFirstSearch())
    episode = controller.reveal()
    assert next(episode) == ControllerAction.observe()
    axes = [RelativeCell(x=d, y=0) for d in range(-5, 6)] + [RelativeCell(x=0, y=d) for d in range(-5, 6) if d]

    action = episode.send(Observation(cells=axes))
    assert action == ControllerAction.move(-1, -1)

    action = episode.send(
        MoveOutcome(accepted=True, dx=-1, dy=-1, cells=[RelativeCell(x=0, y=0, type_name="COLLECTIBLE_COIN")])
    )
    # Every leg starts with a fresh look.
    assert action == ControllerAction.observe()
    assert controller.collected == 0


def test_reveal_searches_with_bfs_whatever_the_strategy():
    strategy = ScriptedStrategy(target=None, frontier=None)
    controller = make_controller(strategy)
    episode = controller.reveal()
    next(episode)
    axes = [RelativeCell(x=d, y=0) for d in range(-5, 6)] + [RelativeCell(x=0, y=d) for d in range(-5, 6) if d]

    assert episode.send(Observation(cells=axes)) == ControllerAction.move(-1, -1)
    assert strategy.calls == []
