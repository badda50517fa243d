"""Command line interface for IV inference, damage tables and route expressions."""
from __future__ import annotations

import argparse
import json
import os
from typing import Any, Dict, List, Sequence

from .compaction import calculate_kill_ranges, combine_identical_lines
from .constants import NATURE_MODIFIERS, STATS, StatLine, get_nature, parse_generation
from .damage import DamageParameters, calculate_ranges
from .errors import InputValidationError, IVRouteError
from .evaluation import format_condition
from .formatting import format_iv_split, format_stat_range
from .formulas import stat as stat_value
from .grammar import calc, conditional
from .hidden_power import hidden_power_type
from .nature import analyze_tracker
from .observability import configure_logging, generate_trace_id, get_logger
from .rolls import parse_rolls, sum_rolls
from .tables import DAMAGE_COLUMNS, IV_RANGE_COLUMNS, damage_rows, export_csv, iv_range_rows
from .tracker import Tracker

LOG_LEVEL_ENV = "IVROUTE_LOG_LEVEL"


def parse_stat_line(value: str) -> StatLine:
    """Parse ``"45,49,49,65,65,45"`` into a :class:`StatLine`."""

    try:
        return StatLine.from_sequence([int(part.strip()) for part in value.split(",")])
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"{value!r} is not a list of up to six comma separated integers"
        ) from None


def parse_leveled_line(value: str) -> tuple[int, StatLine]:
    """Parse ``"LEVEL:hp,atk,def,spa,spd,spe"``."""

    level, separator, stats = value.partition(":")
    if not separator:
        raise argparse.ArgumentTypeError(f"{value!r} must look like LEVEL:hp,atk,def,spa,spd,spe")
    try:
        return int(level), parse_stat_line(stats)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{level!r} is not a level") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Infer IVs from observed stats, tabulate damage and check route expressions"
    )
    parser.add_argument("--output", choices=["text", "json"], default="text")

    subparsers = parser.add_subparsers(dest="command", required=True)

    stat_parser = subparsers.add_parser("stat", help="Compute a single stat value")
    stat_parser.add_argument("--stat", choices=STATS, default="attack")
    stat_parser.add_argument("--level", type=int, required=True)
    stat_parser.add_argument("--base", type=int, required=True)
    stat_parser.add_argument("--iv", type=int, required=True)
    stat_parser.add_argument("--ev", type=int, default=0)
    stat_parser.add_argument("--nature", help="Nature name, e.g. adamant")
    stat_parser.add_argument(
        "--modifier", choices=sorted(NATURE_MODIFIERS), default="neutral",
        help="Nature effect when no --nature is given",
    )
    stat_parser.add_argument("--generation", default="4")
    stat_parser.add_argument("--friendship", type=int, default=0)

    ranges_parser = subparsers.add_parser(
        "ranges", help="Infer IV ranges, nature and hidden power from recorded stats"
    )
    ranges_parser.add_argument(
        "--base-stats", type=parse_stat_line, action="append", required=True,
        help="Base stats per evolution stage, in order",
    )
    ranges_parser.add_argument(
        "--observation", type=parse_leveled_line, action="append", default=[],
        help="LEVEL:hp,atk,def,spa,spd,spe seen at the current evolution",
    )
    ranges_parser.add_argument(
        "--evs", type=parse_leveled_line, action="append", default=[],
        help="LEVEL:hp,atk,def,spa,spd,spe EVs held at that level",
    )
    ranges_parser.add_argument("--evolution", type=int, default=0)
    ranges_parser.add_argument("--starting-level", type=int, default=5)
    ranges_parser.add_argument("--generation", default="4")
    ranges_parser.add_argument("--nature", help="Known nature, if any")
    ranges_parser.add_argument("--hidden-power", action="store_true", dest="hidden_power")
    ranges_parser.add_argument("--csv", help="Also save the ranges table to this CSV path")

    damage_parser = subparsers.add_parser("damage", help="Tabulate damage across every IV")
    damage_parser.add_argument("--level", type=int, required=True)
    damage_parser.add_argument("--base", type=int, required=True, help="Base stat of the tracked Pokémon")
    damage_parser.add_argument("--move-power", type=int, required=True, dest="move_power")
    damage_parser.add_argument("--opponent-stat", type=int, required=True, dest="opponent_stat")
    damage_parser.add_argument("--opponent-level", type=int, default=5, dest="opponent_level")
    damage_parser.add_argument("--generation", default="4")
    damage_parser.add_argument("--evs", type=int, default=0)
    damage_parser.add_argument("--defensive", action="store_true")
    damage_parser.add_argument("--special", action="store_true")
    damage_parser.add_argument("--stab", action="store_true")
    damage_parser.add_argument("--effectiveness", type=float, default=1.0)
    damage_parser.add_argument("--combat-stages", type=int, default=0, dest="combat_stages")
    damage_parser.add_argument(
        "--opponent-combat-stages", type=int, default=0, dest="opponent_combat_stages"
    )
    damage_parser.add_argument("--critical-hit", action="store_true", dest="critical_hit")
    damage_parser.add_argument(
        "--health-threshold", type=int, default=-1, dest="health_threshold",
        help="Bucket rows by how many rolls reach this HP",
    )
    damage_parser.add_argument("--csv", help="Also save the damage table to this CSV path")

    sum_parser = subparsers.add_parser("sum", help="Chance that several hits add up to a KO")
    sum_parser.add_argument(
        "--rolls", action="append", required=True, help="Comma separated rolls of one hit"
    )
    sum_parser.add_argument(
        "--crit-rolls", action="append", default=[], dest="crit_rolls",
        help="Comma separated rolls used when the matching hit crits",
    )
    sum_parser.add_argument("--threshold", type=int, required=True)
    sum_parser.add_argument("--crit-multiplier", type=float, default=2.0, dest="crit_multiplier")
    sum_parser.add_argument("--crit-denominator", type=int, default=16, dest="crit_denominator")
    sum_parser.add_argument(
        "--include-crits", action="store_true", dest="include_crits",
        help="Weigh in the chance that any hit crits",
    )

    parse_parser = subparsers.add_parser("parse", help="Check a calculation or condition")
    parse_parser.add_argument("grammar", choices=["calc", "condition"])
    parse_parser.add_argument("text")

    return parser


def _run_stat(args: argparse.Namespace) -> Dict[str, Any]:
    generation = parse_generation(args.generation)
    if args.nature:
        try:
            modifier = get_nature(args.nature).modifier(args.stat)
        except KeyError:
            raise InputValidationError(f"{args.nature} is not a valid nature.") from None
    else:
        modifier = NATURE_MODIFIERS[args.modifier]
    value = stat_value(
        args.stat, args.level, args.base, args.iv, args.ev, modifier, generation,
        friendship=args.friendship,
    )
    return {"stat": args.stat, "level": args.level, "value": value}


def _run_ranges(args: argparse.Namespace) -> Dict[str, Any]:
    observations = {level: dict(line.items()) for level, line in args.observation}
    tracker = Tracker(
        name="cli",
        base_stats=tuple(args.base_stats),
        generation=parse_generation(args.generation),
        evolution=args.evolution,
        starting_level=args.starting_level,
        calculate_hidden_power=args.hidden_power,
        recorded_stats={args.evolution: observations},
        ev_segments={args.starting_level: dict(args.evs)},
        static_nature=args.nature.lower() if args.nature else None,
    )
    analysis = analyze_tracker(tracker)
    result: Dict[str, Any] = {
        "ranges": iv_range_rows(analysis.ranges, analysis.nature),
        "nature": {"positive": analysis.nature.positive, "negative": analysis.nature.negative},
    }
    if tracker.calculate_hidden_power:
        result["hidden_power"] = hidden_power_type(analysis.ranges, analysis.nature)
    if args.csv:
        result["csv_path"] = str(export_csv(result["ranges"], args.csv, IV_RANGE_COLUMNS))
    return result


def _run_damage(args: argparse.Namespace) -> Dict[str, Any]:
    if args.defensive:
        stat = "sp_defense" if args.special else "defense"
    else:
        stat = "sp_attack" if args.special else "attack"
    params = DamageParameters(
        level=args.level,
        base_stat=args.base,
        move_power=args.move_power,
        opponent_stat=args.opponent_stat,
        opponent_level=args.opponent_level,
        generation=parse_generation(args.generation),
        stat=stat,
        evs=args.evs,
        combat_stages=args.combat_stages,
        opponent_combat_stages=args.opponent_combat_stages,
        type_effectiveness=args.effectiveness,
        stab=args.stab,
        critical_hit=args.critical_hit,
        offensive=not args.defensive,
    )
    results = calculate_ranges(params)
    lines: List[tuple[str, str, str]] = []
    if args.health_threshold != -1:
        for successes, bucket in calculate_kill_ranges(results, args.health_threshold).items():
            lines.append(
                (
                    format_iv_split(bucket),
                    format_stat_range(bucket.stat_from, bucket.stat_to),
                    f"{successes} / 16",
                )
            )
    else:
        for label, compact in combine_identical_lines(results).items():
            lines.append(
                (format_iv_split(compact), format_stat_range(compact.stat_from, compact.stat_to), label)
            )
    result: Dict[str, Any] = {
        "stat": stat,
        "rows": [
            {"ivs": ivs, "stat": stat_range, "outcome": outcome} for ivs, stat_range, outcome in lines
        ],
    }
    if args.csv:
        result["csv_path"] = str(export_csv(damage_rows(lines), args.csv, DAMAGE_COLUMNS))
    return result


def _run_sum(args: argparse.Namespace) -> Dict[str, Any]:
    rolls = [parse_rolls(text) for text in args.rolls]
    crit_rolls = [parse_rolls(text) for text in args.crit_rolls]
    result = sum_rolls(
        rolls,
        args.threshold,
        adjusted_rolls=crit_rolls,
        crit_multiplier=args.crit_multiplier,
        crit_denominator=args.crit_denominator,
        include_crits=args.include_crits,
    )
    return {
        "combinations": result.combination_count,
        "successes": list(result.successes),
        "critless_probability": result.critless_probability,
        "overall_probability": result.overall_probability,
    }


def _run_parse(args: argparse.Namespace) -> Dict[str, Any]:
    if args.grammar == "calc":
        tree = calc.parse_calculation(args.text)
        return {"grammar": "calc", "source": calc.to_source(tree)}
    condition = conditional.parse_condition(args.text)
    return {
        "grammar": "condition",
        "source": conditional.to_source(condition),
        "description": format_condition(condition) if condition is not None else None,
    }


def _print_text(command: str, result: Dict[str, Any]) -> None:
    if command == "stat":
        print(f"{result['stat']} at level {result['level']}: {result['value']}")
    elif command == "ranges":
        for row in result["ranges"]:
            marker = f" ({row['Nature']})" if row["Nature"] else ""
            print(
                f"{row['Stat']}: {row['Negative']} / {row['Neutral']} / {row['Positive']}"
                f" -> {row['Combined']}{marker}"
            )
        if "hidden_power" in result:
            print(f"Hidden Power: {result['hidden_power'] or 'unknown'}")
        if "csv_path" in result:
            print(f"Saved: {result['csv_path']}")
    elif command == "damage":
        for row in result["rows"]:
            print(f"{row['ivs']}\t{row['stat']}\t{row['outcome']}")
        if "csv_path" in result:
            print(f"Saved: {result['csv_path']}")
    elif command == "sum":
        print(f"{result['combinations']} combinations")
        print(f"Without crits: {result['critless_probability']:.2%}")
        print(f"Overall: {result['overall_probability']:.2%}")
    elif command == "parse":
        print(result["source"])
        if result.get("description"):
            print(result["description"])


_COMMANDS = {
    "stat": _run_stat,
    "ranges": _run_ranges,
    "damage": _run_damage,
    "sum": _run_sum,
    "parse": _run_parse,
}


def main(argv: Sequence[str] | None = None) -> None:
    configure_logging(os.environ.get(LOG_LEVEL_ENV) or None)
    logger = get_logger(__name__)
    parser = build_parser()
    args = parser.parse_args(argv)
    trace_id = generate_trace_id()

    try:
        result = _COMMANDS[args.command](args)
        if args.output == "json":
            print(json.dumps(result, indent=2))
        else:
            _print_text(args.command, result)
        logger.info(
            "cli_command_completed",
            extra={"event": "cli_command_completed", "trace_id": trace_id, "command": args.command},
        )
    except IVRouteError as exc:
        logger.error(
            "cli_command_failed",
            extra={"event": "cli_command_failed", "trace_id": trace_id, "error": exc.to_payload()},
        )
        if args.output == "json":
            print(json.dumps(exc.to_payload(trace_id=trace_id), indent=2))
        parser.error(f"{exc.message} (trace: {trace_id})")
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception(
            "cli_unhandled_error",
            extra={"event": "cli_unhandled_error", "trace_id": trace_id},
        )
        parser.error(f"Unexpected error: {exc}. Reference trace {trace_id}.")


if __name__ == "__main__":  # pragma: no cover
    main()
