"""Route directives: attribute strings in, commands and rendered results out.

Route documents describe trackers, damage tables, calculations, conditions
and level markers as directives whose attributes are raw strings. The
functions here validate those attributes, run the core calculations and
report problems as route errors instead of raising, so one broken directive
never stops the rest of a route from rendering.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .compaction import (
    CompactRange,
    OneShotResult,
    calculate_kill_ranges,
    combine_identical_lines,
    filter_to_stat_range,
)
from .constants import (
    NATURES,
    Generation,
    Stat,
    StatLine,
    format_stat_name,
    parse_generation,
)
from .damage import DamageParameters, calculate_ranges
from .errors import InputValidationError, IVRouteError
from .evaluation import (
    VALUE_FORMATS,
    EvaluationContext,
    evaluate_calculation,
    evaluate_condition,
    format_condition,
    format_value_set,
)
from .formatting import format_iv_split, format_stat_range
from .grammar import parse_calculation, parse_condition
from .observability import get_logger
from .route import (
    CalculationSet,
    LogRouteError,
    RegisterTracker,
    RouteState,
    SetLevelIncrementLine,
    apply_command,
    build_calculation_set,
    current_route_level,
    parse_level,
    route_variables,
)
from .typechart import is_stab, is_type_name, move_effectiveness

__all__ = [
    "EV_SECTION_PATTERN",
    "TrackerDirective",
    "parse_ev_segments",
    "parse_type_definition",
    "parse_tracker_directive",
    "ParentPokemon",
    "DamageTable",
    "build_damage_table",
    "CalculationResult",
    "run_calculation",
    "ConditionResult",
    "run_condition",
    "apply_level_directive",
]

logger = get_logger(__name__)

EV_SECTION_PATTERN = re.compile(r"^\s*([1-9][0-9]*):\s*$")
_TYPE_SEPARATORS = re.compile(r"[,/]")
_IV_ATTRIBUTES = ("hpIV", "attackIV", "defenseIV", "spAttackIV", "spDefenseIV", "speedIV")

Attributes = Mapping[str, str]


def _log_errors(directive: str, errors: list[str], **context: Any) -> None:
    for message in errors:
        logger.warning(
            "route_directive_error",
            extra={"event": "route_directive_error", "directive": directive, "detail": message, **context},
        )


def _is_true(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


def _leading_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    match = re.match(r"\s*([+-]?[0-9]+)", raw)
    return int(match.group(1)) if match else None


def parse_ev_segments(contents: str | None) -> tuple[dict[int, dict[int, StatLine]], list[str]]:
    """Parse EV blocks keyed by starting level.

    ``5:`` opens the block for a tracker caught at level 5, and each
    following ``level -> hp, atk, def, spa, spd, spe  # note`` line records
    the EVs held at that level.
    """

    segments: dict[int, dict[int, StatLine]] = {}
    errors: list[str] = []
    current: dict[int, StatLine] | None = None
    for raw_line in (contents or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue
        section = EV_SECTION_PATTERN.match(line)
        if section:
            current = segments.setdefault(int(section.group(1)), {})
            continue
        if current is None:
            errors.append("Invalid EV definition: must lead with a starting level directive.")
            continue
        level, separator, evs = line.partition("->")
        try:
            if not separator:
                raise ValueError(line)
            values = [int(value.strip()) for value in evs.split("#", 1)[0].split(",")]
            current[int(level.strip())] = StatLine.from_sequence(values)
        except ValueError:
            errors.append(f"Invalid EV definition: {line}.")
    return segments, errors


def parse_type_definition(raw: str | None) -> tuple[tuple[str, ...], list[str]]:
    """Split ``"water, ground"`` or ``"water/ground"`` into known type names."""

    types: list[str] = []
    invalid: list[str] = []
    for segment in _TYPE_SEPARATORS.split(raw or ""):
        name = segment.strip().lower()
        if not name:
            continue
        if is_type_name(name):
            types.append(name)
        else:
            invalid.append(segment.strip())
    return tuple(types), invalid


def _parse_base_stats(raw: str | None, species: str) -> tuple[tuple[StatLine, ...], list[str]]:
    try:
        parsed = json.loads(raw or "[]")
        if not isinstance(parsed, list):
            raise ValueError(raw)
        return tuple(StatLine.from_sequence(line) for line in parsed), []
    except (TypeError, ValueError):
        return (StatLine(),), [f"Unable to parse base stats for {species}: {raw}"]


def _parse_direct_input_natures(raw: str | None) -> tuple[tuple[str, ...], list[str]]:
    try:
        parsed = json.loads(raw or "[]")
    except ValueError:
        return (), [f"Unable to parse direct input natures: {raw}"]
    if not isinstance(parsed, list):
        return (), ["directInputNatures must be a JSON array."]
    natures = [str(value).lower() for value in parsed]
    invalid = next((nature for nature in natures if nature not in NATURES), None)
    if invalid is not None:
        return (), [f"The direct input nature value {invalid} is not a valid nature."]
    return tuple(natures), []


@dataclass(frozen=True)
class TrackerDirective:
    command: RegisterTracker
    errors: tuple[str, ...] = ()


def parse_tracker_directive(attributes: Attributes) -> TrackerDirective:
    """Turn an IV tracker directive into a :class:`RegisterTracker` command.

    Problems with individual attributes are collected as errors and the
    attribute falls back to its default, matching how a route keeps
    rendering around a typo.
    """

    species = attributes.get("species") or "<no name specified>"
    errors: list[str] = []

    base_stats, base_errors = _parse_base_stats(attributes.get("baseStats"), species)
    errors.extend(base_errors)

    generation: Generation
    try:
        generation = parse_generation(attributes.get("generation"))
    except IVRouteError as exc:
        errors.append(exc.message)
        generation = 4

    ivs = [_leading_int(attributes.get(name)) for name in _IV_ATTRIBUTES]
    static_ivs = StatLine.from_sequence([-1 if iv is None else iv for iv in ivs])

    static_nature = attributes.get("nature")
    if static_nature:
        static_nature = static_nature.strip().lower()
        if static_nature not in NATURES:
            errors.append(f"{attributes['nature']} is not a valid nature.")
            static_nature = None
    else:
        static_nature = None

    natures, nature_errors = _parse_direct_input_natures(attributes.get("directInputNatures"))
    errors.extend(nature_errors)

    types, invalid_types = parse_type_definition(attributes.get("type"))
    errors.extend(f"Invalid type definition for {species}: {segment}." for segment in invalid_types)

    ev_segments, ev_errors = parse_ev_segments(attributes.get("contents"))
    errors.extend(ev_errors)

    command = RegisterTracker(
        name=species,
        base_stats=base_stats,
        generation=generation,
        calculate_hidden_power=attributes.get("hiddenPower") == "true",
        ev_segments=ev_segments,
        static_ivs=static_ivs,
        static_nature=static_nature,
        direct_input=_is_true(attributes.get("directInput")),
        direct_input_natures=natures,
        types=types,
    )
    _log_errors("tracker", errors, species=species)
    return TrackerDirective(command, tuple(errors))


@dataclass(frozen=True)
class ParentPokemon:
    """Stats of the opponent block a damage table is nested in."""

    stats: StatLine | None = None
    level: int | None = None
    types: tuple[str, ...] = ()


DamageRows = Union[dict[str, CompactRange], dict[int, OneShotResult]]


@dataclass(frozen=True)
class DamageTable:
    """Damage rows still possible for the tracker, ready to render."""

    stat: Stat
    health_threshold: int
    rows: DamageRows = field(default_factory=dict)
    error: str | None = None

    @property
    def against_threshold(self) -> bool:
        return self.health_threshold != -1

    def lines(self) -> list[tuple[str, str, str]]:
        """``(IVs, stat range, damage or kill chance)`` for every row."""

        rendered = []
        for key, row in self.rows.items():
            outcome = f"{row.successes} / 16" if isinstance(row, OneShotResult) else str(key)
            rendered.append((format_iv_split(row), format_stat_range(row.stat_from, row.stat_to), outcome))
        return rendered

    def summary(self) -> str | None:
        """One-line description when exactly one row remains."""

        if len(self.rows) != 1:
            return None
        key, row = next(iter(self.rows.items()))
        if isinstance(row, OneShotResult):
            head = f"is a {row.successes} / 16 range to kill"
        else:
            head = f"deals {key} damage"
        return (
            f"{head} at {format_stat_range(row.stat_from, row.stat_to)} "
            f"{format_stat_name(self.stat)} ({format_iv_split(row)})"
        )


def _number(attributes: Attributes, name: str, default: float) -> float:
    raw = attributes.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        raise InputValidationError(f"{raw} is not a number.", context={"attribute": name})
    return value


def _optional_number(attributes: Attributes, name: str) -> float | None:
    raw = attributes.get(name)
    if raw is None or not raw.strip():
        return None
    return _number(attributes, name, 0)


def _validate_damage_table(
    state: RouteState, attributes: Attributes, parent: ParentPokemon
) -> str | None:
    source = attributes.get("source")
    if not source or source not in state.trackers:
        return f"No IV table with the name {source} exists."
    if not attributes.get("movePower"):
        return "The movePower attribute must be specified."
    if not attributes.get("opponentStat") and parent.stats is None:
        return (
            "Either the opponentStat attribute must be specified, "
            "or stats must be defined in the parent pokemon block."
        )
    return None


def _health_threshold(attributes: Attributes, offensive: bool, parent: ParentPokemon) -> tuple[int, list[str]]:
    raw = (attributes.get("healthThreshold") or "-1").strip()
    if raw.lower() == "auto":
        if not offensive:
            return -1, ['"auto" health threshold is only supported for offensive calculations.']
        if parent.stats is None:
            return -1, ['"auto" health threshold requires stats in the parent pokemon block.']
        return parent.stats.hp, []
    return int(_number(attributes, "healthThreshold", -1)), []


def _damage_parameters(
    calculation_set: CalculationSet,
    attributes: Attributes,
    level: int,
    parent: ParentPokemon,
    move_type: str | None,
) -> tuple[DamageParameters, Stat]:
    tracker = calculation_set.tracker
    offensive = (attributes.get("offensive") or "true").strip().lower() == "true"
    special = _is_true(attributes.get("special"))
    offensive_stat: Stat = "sp_attack" if special else "attack"
    defensive_stat: Stat = "sp_defense" if special else "defense"
    stat = offensive_stat if offensive else defensive_stat
    opponent_stat_name = defensive_stat if offensive else offensive_stat

    evolution = int(_number(attributes, "evolution", 0))
    evs = int(_number(attributes, "evs", -1))
    if evs == -1:
        evs = tracker.evs_at(level, stat)

    attacker_types = tracker.types if offensive else parent.types
    defender_types = parent.types if offensive else tracker.types
    stab = attributes.get("stab")
    effectiveness = _optional_number(attributes, "effectiveness")
    if effectiveness is None:
        effectiveness = (
            move_effectiveness(move_type, *defender_types) if move_type and defender_types else 1.0
        )

    opponent_stat = _optional_number(attributes, "opponentStat")
    if opponent_stat is None:
        opponent_stat = parent.stats[opponent_stat_name] if parent.stats is not None else 5
    opponent_level = _optional_number(attributes, "opponentLevel")
    if opponent_level is None:
        opponent_level = parent.level if parent.level is not None else 5

    params = DamageParameters(
        level=level,
        base_stat=tracker.base_stats_for(evolution)[stat],
        move_power=int(_number(attributes, "movePower", 0)),
        opponent_stat=int(opponent_stat),
        opponent_level=int(opponent_level),
        generation=tracker.generation,
        stat=stat,
        evs=evs,
        combat_stages=int(_number(attributes, "combatStages", 0)),
        opponent_combat_stages=int(_number(attributes, "opponentCombatStages", 0)),
        type_effectiveness=effectiveness,
        stab=stab.strip().lower() == "true" if stab is not None else is_stab(move_type, attacker_types),
        torrent=_is_true(attributes.get("torrent")),
        weather_boosted=_is_true(attributes.get("weatherBoosted")),
        weather_reduced=_is_true(attributes.get("weatherReduced")),
        multi_target=_is_true(attributes.get("multiTarget")),
        screen=_is_true(attributes.get("screen")),
        offensive=offensive,
        friendship=int(_number(attributes, "friendship", 0)),
        other_modifier=_number(attributes, "otherModifier", 1.0),
        other_power_modifier=_number(attributes, "otherPowerModifier", 1.0),
    )
    return params, stat


def build_damage_table(
    state: RouteState,
    attributes: Attributes,
    *,
    line: int = 0,
    parent: ParentPokemon | None = None,
) -> DamageTable:
    """Evaluate a damage table directive against the route's current state.

    Rows are bucketed by kill chance when ``healthThreshold`` is set (or is
    ``auto`` inside a parent pokemon block) and by damage output otherwise.
    Rows no IV in the tracker's current domain can produce are dropped.
    """

    parent = parent or ParentPokemon()
    offensive = (attributes.get("offensive") or "true").strip().lower() == "true"
    stat: Stat = ("sp_attack" if offensive else "sp_defense") if _is_true(attributes.get("special")) else (
        "attack" if offensive else "defense"
    )
    errors: list[str] = []

    def failed(message: str) -> DamageTable:
        errors.append(message)
        _log_errors("damage_table", errors, source=attributes.get("source"), line=line)
        return DamageTable(stat, -1, {}, message)

    problem = _validate_damage_table(state, attributes, parent)
    if problem is not None:
        return failed(problem)

    move_type = (attributes.get("type") or "").strip().lower() or None
    if move_type is not None and not is_type_name(move_type):
        errors.append(f"Invalid type definition for damage table: {attributes.get('type')}.")
        move_type = None

    calculation_set = build_calculation_set(state, attributes.get("source"))
    if calculation_set is None:
        return failed(f"No IV table with the name {attributes.get('source')} exists.")
    try:
        level = current_route_level(state, attributes.get("source"), line, attributes.get("level"))
        threshold, threshold_errors = _health_threshold(attributes, offensive, parent)
        errors.extend(threshold_errors)
        params, stat = _damage_parameters(calculation_set, attributes, level, parent, move_type)
        results = calculate_ranges(params)
    except IVRouteError as exc:
        return failed(exc.message)

    range_set = calculation_set.ranges[stat]
    rows: DamageRows
    if threshold != -1:
        rows = filter_to_stat_range(
            calculate_kill_ranges(results, threshold), calculation_set.nature, stat, range_set
        )
    else:
        rows = filter_to_stat_range(
            combine_identical_lines(results), calculation_set.nature, stat, range_set
        )
    _log_errors("damage_table", errors, source=attributes.get("source"), line=line)
    return DamageTable(stat, threshold, rows, errors[0] if errors else None)


@dataclass(frozen=True)
class CalculationResult:
    text: str
    values: tuple[float, ...] = ()
    error: str | None = None


def run_calculation(
    state: RouteState,
    contents: str,
    attributes: Attributes | None = None,
) -> CalculationResult:
    """Evaluate a calculation directive and format it (``range`` by default)."""

    attributes = attributes or {}
    source = attributes.get("source")
    value_format = attributes.get("format") or "range"
    calculation_set = build_calculation_set(state, source)
    try:
        tree = parse_calculation(contents)
        context = (
            calculation_set.context(
                level=attributes.get("level"),
                evolution=int(_number(attributes, "evolution", 0)),
            )
            if calculation_set is not None
            else _bare_context(state, source, attributes)
        )
        values = evaluate_calculation(tree, context)
    except IVRouteError as exc:
        message = f"{contents} is not a valid calculation: {exc.message}"
        _log_errors("calculation", [message], source=source)
        return CalculationResult(message, (), message)

    if value_format not in VALUE_FORMATS:
        _log_errors("calculation", [f"Invalid formatter {value_format}."], source=source)
    return CalculationResult(format_value_set(values, value_format), tuple(values))


def _bare_context(state: RouteState, source: str | None, attributes: Attributes) -> EvaluationContext:
    return EvaluationContext(
        level=attributes.get("level"),
        source=source,
        variables=route_variables(state),
    )


@dataclass(frozen=True)
class ConditionResult:
    met: bool
    description: str | None = None
    error: str | None = None


def run_condition(state: RouteState, attributes: Attributes) -> ConditionResult:
    """Evaluate a conditional block's ``condition`` for its ``source`` tracker."""

    source = attributes.get("source")
    condition = attributes.get("condition")
    if not source:
        return _condition_error("The source attribute must be specified.")
    if not condition:
        return _condition_error("The condition attribute must be specified.")
    calculation_set = build_calculation_set(state, source)
    if calculation_set is None:
        return _condition_error(f"No IV table with the name {source} exists.")

    level = attributes.get("level")
    try:
        parsed = parse_condition(condition)
        if parsed is None:
            return ConditionResult(True)
        context = calculation_set.context(
            level=level or None,
            evolution=int(_number(attributes, "evolution", 0)),
        )
        met = evaluate_condition(parsed, context)
    except IVRouteError as exc:
        return _condition_error(f"{condition} is not a valid conditional statement: {exc.message}")

    description = format_condition(parsed)
    if level:
        description += f" at Lv. {level}"
    return ConditionResult(met, description if met else None)


def _condition_error(message: str) -> ConditionResult:
    _log_errors("condition", [message])
    return ConditionResult(False, None, message)


def apply_level_directive(state: RouteState, attributes: Attributes, line: int) -> RouteState:
    """Record the level a tracker reaches at *line*, or log why it cannot."""

    source = attributes.get("source")
    value = attributes.get("value")
    message: str | None = None
    if not source:
        message = "Level directives require the source attribute."
    elif not value:
        message = "Level directives require the value attribute."
    else:
        try:
            level = parse_level(value)
        except InputValidationError as exc:
            message = exc.message
        else:
            if source not in state.trackers:
                message = f"No IV table with the name {source} exists."
            else:
                return apply_command(state, SetLevelIncrementLine(source, level, line))

    _log_errors("level", [message], source=source, line=line)
    return apply_command(state, LogRouteError(message))

