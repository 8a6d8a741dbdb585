"""CLI tool for preparing and checking timetable exports."""

import json
import sys
from pathlib import Path

from transit_timetables.application.services.constraint_store import ConstraintStore
from transit_timetables.application.services.debounce_resolver import (
    format_margin,
    resolve_auto_margin,
)
from transit_timetables.application.services.slot_generator import generate_recurring
from transit_timetables.application.services.timetable_codec import (
    export_timetable,
    import_timetable,
)
from transit_timetables.application.services.timetable_validator import validate_line
from transit_timetables.domain.models import (
    DebounceConfig,
    Frequency,
    Slot,
    TimetableError,
    TimetableValidationError,
)


def parse_time(text: str) -> tuple[int, int]:
    """Parse "m:ss" or "mm:ss" into (minute, second)."""
    minute, sep, second = text.strip().partition(":")
    if not sep or not minute.isdigit() or not second.isdigit():
        raise TimetableValidationError(f"Expected a time as mm:ss, got {text!r}")
    return int(minute), int(second)


def parse_slot(text: str) -> Slot:
    """Parse "mm:ss/mm:ss" (arrival/departure) into a slot."""
    arrival, sep, departure = text.partition("/")
    if not sep:
        raise TimetableValidationError(f"Expected a slot as mm:ss/mm:ss, got {text!r}")
    return Slot(*parse_time(arrival), *parse_time(departure))


def generate_slots(slot_text: str, separation_minutes: float) -> list[Slot]:
    """The template slot followed by its repetitions within the hour."""
    template = parse_slot(slot_text)
    return [template, *generate_recurring(template, separation_minutes)]


def build_stop_export(line: int, stop: int, slots: list[Slot]) -> str:
    """Export text holding a single arrival/departure stop."""
    store = ConstraintStore()
    store.replace_conditions(line, stop, slots)
    store.set_has_timetable(line, True)
    return export_timetable(store, line) or ""


def margin_text(frequency_text: str, target_text: str) -> str:
    frequency = Frequency(*parse_time(frequency_text))
    target = DebounceConfig(*parse_time(target_text))
    return format_margin(resolve_auto_margin(frequency, target))


def load_export(path: str) -> ConstraintStore:
    store = ConstraintStore()
    import_timetable(store, Path(path).read_text(encoding="utf-8"))
    return store


def validate_file(path: str, line: int | None = None, frequency_seconds: int | None = None) -> int:
    """Print the findings for an export file.

    Returns:
        The number of findings.
    """
    store = load_export(path)
    lines = [line] if line is not None else sorted(store.lines)
    count = 0
    for line_id in lines:
        results = validate_line(store, line_id, frequency_seconds)
        if not results:
            print(f"Line {line_id}: OK")
            continue
        print(f"Line {line_id}:")
        for stop, warnings in results.items():
            for warning in warnings:
                where = f" (#{warning.index})" if warning.index is not None else ""
                print(f"  stop {stop}{where}: [{warning.kind.value}] {warning.message}")
                count += 1
    return count


def extract_line(path: str, line: int) -> str | None:
    return export_timetable(load_export(path), line)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Transit timetables configuration helper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List the slots of an hour repeating 05:00/05:30 every 15 minutes
  timetables-config generate 05:00/05:30 15

  # Write them as an importable timetable for line 3, stop 2
  timetables-config generate 05:00/05:30 15 --line 3 --stop 2 > line3.json

  # Show the auto-debounce margin for a 10 minute headway and a 2:30 target
  timetables-config margin 10:00 2:30

  # Check an exported timetable against a 600 second headway
  timetables-config validate line3.json --frequency 600

  # Extract line 3 from a full export
  timetables-config extract all-lines.json 3
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate recurring slots")
    generate_parser.add_argument("slot", help="First slot as mm:ss/mm:ss (arrival/departure)")
    generate_parser.add_argument("separation", type=float, help="Minutes between slots")
    generate_parser.add_argument("--line", type=int, help="Emit an export for this line")
    generate_parser.add_argument("--stop", type=int, default=1, help="Stop of the export")

    # Margin command
    margin_parser = subparsers.add_parser("margin", help="Show an auto-debounce margin")
    margin_parser.add_argument("frequency", help="Line headway as mm:ss")
    margin_parser.add_argument("target", help="Auto-debounce target as mm:ss")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Check an exported timetable")
    validate_parser.add_argument("file", help="Export file")
    validate_parser.add_argument("--line", type=int, help="Only check this line")
    validate_parser.add_argument("--frequency", type=int, help="Line headway in seconds")
    validate_parser.add_argument(
        "--strict", action="store_true", help="Exit with status 2 when there are findings"
    )

    # Extract command
    extract_parser = subparsers.add_parser("extract", help="Extract one line from an export")
    extract_parser.add_argument("file", help="Export file")
    extract_parser.add_argument("line", type=int, help="Line ID")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "generate":
            slots = generate_slots(args.slot, args.separation)
            if args.line is not None:
                print(build_stop_export(args.line, args.stop, slots))
            else:
                for index, slot in enumerate(slots, start=1):
                    print(f"{index:3d}  {slot}")

        elif args.command == "margin":
            print(margin_text(args.frequency, args.target))

        elif args.command == "validate":
            findings = validate_file(args.file, args.line, args.frequency)
            if findings and args.strict:
                sys.exit(2)

        elif args.command == "extract":
            text = extract_line(args.file, args.line)
            if text is None:
                print(f"Line {args.line} not found in {args.file}.", file=sys.stderr)
                sys.exit(1)
            print(text)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(1)
    except (OSError, json.JSONDecodeError, TimetableError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def cli_main() -> None:
    """Synchronous entry point for the CLI command."""
    main()


if __name__ == "__main__":
    cli_main()
