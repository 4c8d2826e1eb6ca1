import argparse
import logging
import math
import sys
from pathlib import Path

from src.adapters.rules_activity import ActivityRulesAdapter
from src.app_shell.config import configure_logging, validate_ops_rules
from src.components.activity import ReplayActivityInput, run_replay
from src.rules.loader import load_rules, resolve_rules_path
from src.rules.models import Rules

logger = logging.getLogger("cli")


def read_event_times(path: Path) -> tuple[float, ...]:
    """One epoch-seconds timestamp per line. Blank lines and # comments are skipped."""
    times: list[float] = []
    with open(path) as f:
        for lineno, raw in enumerate(f, start=1):
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            try:
                value = float(line)
            except ValueError as e:
                raise ValueError(f"{path}:{lineno}: not a timestamp: {line!r}") from e
            if not math.isfinite(value):
                raise ValueError(f"{path}:{lineno}: not a finite timestamp: {line!r}")
            times.append(value)
    return tuple(times)


def get_rules(path: str | None) -> Rules:
    rules_path = resolve_rules_path(path)
    if not rules_path.exists():
        logger.error(f"Rules file {rules_path} not found.")
        sys.exit(1)
    return load_rules(rules_path)


def handle_replay(rules: Rules, args: argparse.Namespace) -> int:
    try:
        event_times = read_event_times(Path(args.file))
    except (OSError, ValueError) as e:
        logger.error(str(e))
        return 1

    adapter = ActivityRulesAdapter(rules)
    signals = adapter.get_signals()
    signal = args.signal or signals[0]
    if signal not in signals:
        logger.error(f"Signal {signal!r} is not configured (configured: {', '.join(signals)})")
        return 1

    result = run_replay(
        ReplayActivityInput(
            event_times=event_times,
            start_seconds=args.start,
            signal=signal,
            inactivity_threshold_seconds=adapter.get_inactivity_threshold_seconds(),
        )
    )

    if not result.success:
        for err in result.errors:
            logger.error(f"{err.code}: {err.message}")
        return 1

    print(f"Events: {result.event_count}")
    print(f"Sampled seconds: {len(result.sampled_seconds)}")
    print(f"Engaged time: {result.engaged_seconds}s")
    return 0


def handle_check_rules(rules: Rules, args: argparse.Namespace) -> int:
    activity = rules.activity
    print(f"Rules OK ({rules.project.slug} v{rules.project.rules_version})")
    print(f"Inactivity threshold: {activity.inactivity_threshold_seconds}s")
    print(f"Signals: {', '.join(activity.signals)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Page activity CLI")
    parser.add_argument("--rules", help="Path to rules.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # replay
    replay_parser = subparsers.add_parser(
        "replay", help="Compute engaged time from one recorded signal stream"
    )
    replay_parser.add_argument("file", help="File with one epoch-seconds timestamp per line")
    replay_parser.add_argument(
        "--start", type=float, help="Time the page became visible (default: first event)"
    )
    replay_parser.add_argument(
        "--signal",
        help="Signal the file was recorded from (default: first configured signal)",
    )

    # check-rules
    subparsers.add_parser("check-rules", help="Validate the rules file")

    args = parser.parse_args(argv)

    try:
        rules = get_rules(args.rules)
    except ValueError as e:
        print(f"CRITICAL: {e}", file=sys.stderr)
        return 1

    configure_logging(rules)
    validate_ops_rules(rules)

    if args.command == "replay":
        return handle_replay(rules, args)
    elif args.command == "check-rules":
        return handle_check_rules(rules, args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
