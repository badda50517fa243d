"""Route state and the commands that update it.

A route document registers trackers and variables, then the person running
the route records stats, pins natures and sets variables as they play.
Every change is a command passed to :func:`apply_command`, which returns a
new :class:`RouteState` and never mutates the one it was given.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal, Union

from .constants import IV_STATS, STATS, ConfirmedNature, Generation, Stat, StatLine, get_nature
from .errors import InputValidationError, UnknownTrackerError
from .evaluation import EvaluationContext, cast_variable
from .inference import IVRangeSet
from .nature import analyze_tracker
from .tracker import DEFAULT_STARTING_LEVEL, NO_STATIC_IVS, EVSchedule, Tracker

__all__ = [
    "VARIABLE_TYPES",
    "VariableState",
    "RouteState",
    "RegisterTracker",
    "SetStat",
    "SetManualNature",
    "SetManualPositiveNature",
    "SetManualNegativeNature",
    "SetManualNeutralNature",
    "SetCurrentLevel",
    "SetDirectInputIV",
    "TriggerEvolution",
    "ResetTracker",
    "SetStartingLevel",
    "RegisterVariable",
    "SetVariableValue",
    "SetLevelIncrementLine",
    "ResetRoute",
    "LogRouteError",
    "RouteCommand",
    "apply_command",
    "apply_commands",
    "current_route_level",
    "parse_level",
    "route_variables",
    "CalculationSet",
    "build_calculation_set",
]

VariableType = Literal["text", "number", "boolean", "select"]
VARIABLE_TYPES: tuple[str, ...] = ("text", "number", "boolean", "select")


@dataclass(frozen=True)
class VariableState:
    type: VariableType
    value: str | None = None
    default_value: str | None = None


@dataclass(frozen=True)
class RouteState:
    trackers: Mapping[str, Tracker] = field(default_factory=dict)
    variables: Mapping[str, VariableState] = field(default_factory=dict)
    route_errors: tuple[str, ...] = ()

    def tracker(self, name: str) -> Tracker:
        """Return the tracker registered as *name*.

        Raises:
            UnknownTrackerError: If no such tracker exists.
        """

        try:
            return self.trackers[name]
        except KeyError:
            raise UnknownTrackerError(
                f"No IV table with the name {name} exists.",
                remediation="Register the tracker before recording stats for it.",
                context={"tracker": name},
            ) from None


@dataclass(frozen=True)
class RegisterTracker:
    """Register a tracker; re-registering an existing name keeps its state."""

    name: str
    base_stats: tuple[StatLine, ...]
    generation: Generation = 4
    calculate_hidden_power: bool = False
    ev_segments: EVSchedule = field(default_factory=dict)
    static_ivs: StatLine = NO_STATIC_IVS
    static_nature: str | None = None
    direct_input: bool = False
    direct_input_natures: tuple[str, ...] = ()
    types: tuple[str, ...] = ()


@dataclass(frozen=True)
class SetStat:
    """Record *value* for *stat* at *level*, under the tracker's current evolution."""

    name: str
    stat: Stat
    level: int
    value: int


@dataclass(frozen=True)
class SetManualNature:
    name: str
    positive: Stat | None = None
    negative: Stat | None = None


@dataclass(frozen=True)
class SetManualPositiveNature:
    name: str
    stat: Stat | None = None


@dataclass(frozen=True)
class SetManualNegativeNature:
    name: str
    stat: Stat | None = None


@dataclass(frozen=True)
class SetManualNeutralNature:
    """Pin a stat as unaffected by nature by pinning both sides to it."""

    name: str
    stat: Stat | None = None


@dataclass(frozen=True)
class SetCurrentLevel:
    name: str
    level: int


@dataclass(frozen=True)
class SetDirectInputIV:
    name: str
    stat: Stat
    value: int


@dataclass(frozen=True)
class TriggerEvolution:
    name: str
    deevolve: bool = False


@dataclass(frozen=True)
class ResetTracker:
    name: str


@dataclass(frozen=True)
class SetStartingLevel:
    name: str
    starting_level: int


@dataclass(frozen=True)
class RegisterVariable:
    name: str
    type: VariableType = "text"
    default_value: str | None = None


@dataclass(frozen=True)
class SetVariableValue:
    name: str
    value: str | None


@dataclass(frozen=True)
class SetLevelIncrementLine:
    """Record that *source* reaches *level* at document line *line*."""

    source: str
    level: int
    line: int


@dataclass(frozen=True)
class ResetRoute:
    pass


@dataclass(frozen=True)
class LogRouteError:
    message: str


RouteCommand = Union[
    RegisterTracker,
    SetStat,
    SetManualNature,
    SetManualPositiveNature,
    SetManualNegativeNature,
    SetManualNeutralNature,
    SetCurrentLevel,
    SetDirectInputIV,
    TriggerEvolution,
    ResetTracker,
    SetStartingLevel,
    RegisterVariable,
    SetVariableValue,
    SetLevelIncrementLine,
    ResetRoute,
    LogRouteError,
]


def _check_pin(stat: str | None) -> None:
    if stat is not None and stat not in IV_STATS:
        raise InputValidationError(
            f"{stat} cannot be boosted or reduced by a nature.",
            context={"stat": stat},
        )


def _check_stat(stat: str) -> None:
    if stat not in STATS:
        raise InputValidationError(f"{stat} is not a valid stat.", context={"stat": stat})


def _with_tracker(state: RouteState, tracker: Tracker) -> RouteState:
    return replace(state, trackers={**state.trackers, tracker.name: tracker})


def _register_tracker(state: RouteState, command: RegisterTracker) -> RouteState:
    if command.name in state.trackers:
        return state
    for nature in command.direct_input_natures:
        try:
            get_nature(nature)
        except KeyError:
            raise InputValidationError(f"{nature} is not a valid nature.") from None
    starting_level = min(command.ev_segments, default=DEFAULT_STARTING_LEVEL)
    tracker = Tracker(
        name=command.name,
        base_stats=tuple(command.base_stats),
        generation=command.generation,
        starting_level=starting_level,
        current_level=starting_level,
        calculate_hidden_power=command.calculate_hidden_power,
        ev_segments=dict(command.ev_segments),
        static_ivs=command.static_ivs,
        static_nature=command.static_nature,
        direct_input=command.direct_input,
        direct_input_natures=tuple(command.direct_input_natures),
        types=tuple(command.types),
    )
    return _with_tracker(state, tracker)


def _set_stat(tracker: Tracker, command: SetStat) -> Tracker:
    _check_stat(command.stat)
    timeline = {evolution: dict(levels) for evolution, levels in tracker.recorded_stats.items()}
    levels = timeline.setdefault(tracker.evolution, {})
    levels[command.level] = {**levels.get(command.level, {}), command.stat: command.value}
    return replace(tracker, recorded_stats=timeline)


def _reset(tracker: Tracker, **changes: Any) -> Tracker:
    return replace(
        tracker,
        evolution=0,
        recorded_stats={},
        manual_positive_nature=None,
        manual_negative_nature=None,
        **changes,
    )


def _update_tracker(tracker: Tracker, command: RouteCommand) -> Tracker:
    if isinstance(command, SetStat):
        return _set_stat(tracker, command)
    if isinstance(command, SetManualNature):
        _check_pin(command.positive)
        _check_pin(command.negative)
        return replace(
            tracker,
            manual_positive_nature=command.positive,
            manual_negative_nature=command.negative,
        )
    if isinstance(command, SetManualPositiveNature):
        _check_pin(command.stat)
        return replace(tracker, manual_positive_nature=command.stat)
    if isinstance(command, SetManualNegativeNature):
        _check_pin(command.stat)
        return replace(tracker, manual_negative_nature=command.stat)
    if isinstance(command, SetManualNeutralNature):
        _check_pin(command.stat)
        return replace(
            tracker, manual_positive_nature=command.stat, manual_negative_nature=command.stat
        )
    if isinstance(command, SetCurrentLevel):
        return replace(tracker, current_level=command.level)
    if isinstance(command, SetDirectInputIV):
        _check_stat(command.stat)
        if not -1 <= command.value <= 31:
            raise InputValidationError(f"{command.value} is not a valid IV.")
        return replace(
            tracker, direct_input_ivs=tracker.direct_input_ivs.replace(command.stat, command.value)
        )
    if isinstance(command, TriggerEvolution):
        last_stage = max(len(tracker.base_stats) - 1, 0)
        step = -1 if command.deevolve else 1
        return replace(tracker, evolution=min(max(tracker.evolution + step, 0), last_stage))
    if isinstance(command, ResetTracker):
        return _reset(tracker)
    if isinstance(command, SetStartingLevel):
        return _reset(tracker, starting_level=command.starting_level)
    raise InputValidationError(f"Unsupported route command {type(command).__name__}.")


def _tracker_name(command: RouteCommand) -> str | None:
    if isinstance(command, SetLevelIncrementLine):
        return command.source
    return getattr(command, "name", None)


def apply_command(state: RouteState, command: RouteCommand) -> RouteState:
    """Return the state that results from applying *command* to *state*.

    Raises:
        UnknownTrackerError: If the command targets an unregistered tracker.
        InputValidationError: If the command is malformed or unsupported.
    """

    if isinstance(command, RegisterTracker):
        return _register_tracker(state, command)
    if isinstance(command, RegisterVariable):
        if command.type not in VARIABLE_TYPES:
            raise InputValidationError(f"{command.type} is not a valid variable type.")
        if command.name in state.variables:
            return state
        variable = VariableState(command.type, command.default_value, command.default_value)
        return replace(state, variables={**state.variables, command.name: variable})
    if isinstance(command, SetVariableValue):
        current = state.variables.get(command.name)
        if current is None:
            raise InputValidationError(f"Variable {command.name} is not registered.")
        return replace(
            state, variables={**state.variables, command.name: replace(current, value=command.value)}
        )
    if isinstance(command, ResetRoute):
        return replace(
            state,
            trackers={name: _reset(tracker) for name, tracker in state.trackers.items()},
            variables={
                name: replace(variable, value=variable.default_value)
                for name, variable in state.variables.items()
            },
            route_errors=(),
        )
    if isinstance(command, LogRouteError):
        return replace(state, route_errors=(*state.route_errors, command.message))
    if isinstance(command, SetLevelIncrementLine):
        tracker = state.tracker(command.source)
        lines = {**tracker.level_increment_lines, command.level: command.line}
        return _with_tracker(state, replace(tracker, level_increment_lines=lines))

    name = _tracker_name(command)
    if name is None:
        raise InputValidationError(f"Unsupported route command {type(command).__name__}.")
    return _with_tracker(state, _update_tracker(state.tracker(name), command))


def apply_commands(state: RouteState, commands: Iterable[RouteCommand]) -> RouteState:
    for command in commands:
        state = apply_command(state, command)
    return state


def parse_level(value: int | str) -> int:
    """Whole-number level from a directive attribute such as ``"12"``.

    Raises:
        InputValidationError: If *value* is not a finite whole number.
    """

    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except ValueError:
        number = math.nan
    if not math.isfinite(number):
        raise InputValidationError(f"{value} is not a number.", context={"level": value})
    if not number.is_integer():
        raise InputValidationError(f"{value} is not a whole level.", context={"level": value})
    return int(number)


def current_route_level(
    state: RouteState,
    source: str | None,
    line: int,
    manual_value: int | str | None = None,
) -> int:
    """Level of *source* at document *line*.

    Returns ``-1`` without a source and *manual_value* when one is given.
    Otherwise the level registered on the latest line at or before *line*
    wins, falling back to the tracker's starting level.

    Raises:
        InputValidationError: If *manual_value* is not a whole number.
    """

    if not source:
        return -1
    if manual_value is not None:
        return parse_level(manual_value)
    tracker = state.trackers.get(source)
    if tracker is None:
        return -1
    level, best_line = tracker.starting_level, -1
    for registered_level, registered_line in tracker.level_increment_lines.items():
        if best_line < registered_line <= line:
            level, best_line = registered_level, registered_line
    return level


def route_variables(state: RouteState) -> dict[str, Any]:
    """Typed values of every registered variable (``None`` when unset)."""

    return {
        name: cast_variable(variable.type, variable.value)
        for name, variable in state.variables.items()
    }


@dataclass(frozen=True)
class CalculationSet:
    """A tracker together with its resolved IV ranges and nature."""

    tracker: Tracker
    ranges: dict[Stat, IVRangeSet]
    nature: ConfirmedNature
    variables: dict[str, Any]

    def context(
        self,
        *,
        level: int | str | None = None,
        evolution: int | None = None,
    ) -> EvaluationContext:
        return EvaluationContext(
            tracker=self.tracker,
            ranges=self.ranges,
            nature=self.nature,
            level=level,
            evolution=evolution,
            source=self.tracker.name,
            variables=self.variables,
        )


def build_calculation_set(state: RouteState, source: str | None) -> CalculationSet | None:
    """Analyse *source*'s tracker, or return ``None`` when it is not registered."""

    if not source or source not in state.trackers:
        return None
    tracker = state.trackers[source]
    analysis = analyze_tracker(tracker)
    return CalculationSet(tracker, analysis.ranges, analysis.nature, route_variables(state))
