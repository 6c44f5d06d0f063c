"""WrapReel command-line interface.

Argparse-based CLI that initializes structured logging early and exposes
the sequencer headlessly. Exposed via ``python -m wrapreel``.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Callable, Optional

from . import __app_name__, __version__
from .logging_utils import LogMode, get_default_log_path, setup_logging
from .sequencer import (
    InvalidIndexError,
    ItemSupply,
    PhaseScheduler,
    SequencerController,
    SequencerEvent,
    SequencerEventType,
    SequencerTiming,
    SubPhase,
    classify,
    compute_total_slides,
    load_supply,
)

# Events that change what is on screen
_VISIBLE_EVENTS = (
    SequencerEventType.SEQUENCE_START,
    SequencerEventType.SEQUENCE_RESET,
    SequencerEventType.SLIDE_CHANGE,
    SequencerEventType.PHASE_CHANGE,
    SequencerEventType.ALTERNATE_ENTER,
)


def _add_logging_args(parser: argparse.ArgumentParser, *, suppress_defaults: bool = False) -> None:
    """Add the shared logging flags.

    Subcommand copies use suppressed defaults so values given before the
    subcommand are not overwritten by the subparser.
    """

    def default(value: str) -> str:
        return argparse.SUPPRESS if suppress_defaults else value

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=default("WARNING"),
        help="Set log level (default: WARNING)",
    )
    parser.add_argument(
        "--log-mode",
        choices=[mode.value for mode in LogMode],
        default=default(LogMode.NORMAL.value),
        help="Logging preset: quiet suppresses console info, trace forces DEBUG and timer chatter",
    )
    parser.add_argument(
        "--log-file",
        default=default(str(get_default_log_path())),
        help="Path to log file (default: per-user WrapReel directory)",
    )
    parser.add_argument(
        "--log-format",
        choices=["plain", "json"],
        default=default("plain"),
        help="Log format (plain or json)",
    )


def _build_logging_parent(*, suppress_defaults: bool = False) -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    _add_logging_args(parent, suppress_defaults=suppress_defaults)
    return parent


def _resolve_timing(args) -> SequencerTiming:
    timing = SequencerTiming.from_env()
    scale = getattr(args, "time_scale", None)
    if scale is not None:
        timing = SequencerTiming().scaled(scale)
    return timing


def _positive_float(raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {raw}")
    return value


def _load_items_or_report(args) -> Optional[ItemSupply]:
    supply = load_supply(args.items, limit=getattr(args, "limit", None))
    if supply.error is not None:
        print(f"Error: {supply.error}")
        return None
    if not supply.is_available:
        print(f"Error: no items to present in {args.items}")
        return None
    return supply


def _event_printer(
    controller: SequencerController,
    *,
    as_json: bool,
    clock: Callable[[], float],
) -> Callable[[SequencerEvent], None]:
    def _print(event: SequencerEvent) -> None:
        view = controller.snapshot()
        if as_json:
            payload = {"at_ms": round(clock(), 1), "event": event.event_type.name.lower()}
            payload.update(view.to_dict())
            print(json.dumps(payload, ensure_ascii=False))
        else:
            print(f"[{clock():8.0f}ms] {event.event_type.name:<15} {view.describe()}")
    return _print


def cmd_run(args) -> int:
    """Play the sequence headlessly on a Qt event loop with real timers."""
    from PyQt6.QtCore import QCoreApplication, QElapsedTimer, QTimer

    log = logging.getLogger(__name__)
    supply = _load_items_or_report(args)
    if supply is None:
        return 1

    timing = _resolve_timing(args)
    loops = max(0, int(args.loop))
    if args.timeout is not None:
        timeout_ms = args.timeout * 1000.0
    else:
        timeout_ms = timing.cycle_ms(len(supply.items)) * (loops + 1) * 1.5 + 1000.0

    app = QCoreApplication.instance() or QCoreApplication([])
    elapsed = QElapsedTimer()
    elapsed.start()

    controller = SequencerController(timing=timing)
    result = {"code": 0, "cycles": 0}
    printer = _event_printer(controller, as_json=args.json, clock=lambda: float(elapsed.elapsed()))
    for event_type in _VISIBLE_EVENTS:
        controller.event_emitter.subscribe(event_type, printer)

    def _on_alternate(_event: SequencerEvent) -> None:
        result["cycles"] += 1
        if result["cycles"] <= loops:
            QTimer.singleShot(0, controller.reset_to_start)
        else:
            app.quit()

    def _on_timeout() -> None:
        log.error("[cli] Sequence did not finish within %.1fs", timeout_ms / 1000.0)
        print(f"Error: timed out after {timeout_ms / 1000.0:.1f}s")
        result["code"] = 2
        app.quit()

    controller.event_emitter.subscribe(SequencerEventType.ALTERNATE_ENTER, _on_alternate)

    guard = QTimer()
    guard.setSingleShot(True)
    guard.timeout.connect(_on_timeout)
    guard.start(int(timeout_ms))

    # Deliver like the data source would: loading first, items on a later turn
    QTimer.singleShot(0, lambda: controller.on_supply_changed(ItemSupply.loading()))
    QTimer.singleShot(0, lambda: controller.on_supply_changed(supply))

    log.info("[cli] Running %d item(s), timeout %.1fs", len(supply.items), timeout_ms / 1000.0)
    try:
        app.exec()
    finally:
        guard.stop()
        controller.dispose()
    return result["code"]


def cmd_plan(args) -> int:
    """Simulate one cycle on the manual clock and print the timeline."""
    from .devtools.manual_clock import ManualTimerSource

    supply = _load_items_or_report(args)
    if supply is None:
        return 1

    clock = ManualTimerSource()
    with SequencerController(timing=_resolve_timing(args), timer_source=clock) as controller:
        printer = _event_printer(controller, as_json=args.json, clock=lambda: clock.now_ms)
        for event_type in _VISIBLE_EVENTS:
            controller.event_emitter.subscribe(event_type, printer)
        controller.on_supply_changed(supply)
        clock.run_until_idle()
        if not controller.is_alternate():
            print("Error: cycle did not reach the alternate mode")
            return 1
    return 0


def cmd_classify(args) -> int:
    """Print the descriptor and dwell for one slide index."""
    total = compute_total_slides(args.items)
    try:
        descriptor = classify(args.index, total)
    except InvalidIndexError as exc:
        print(f"Error: {exc}")
        return 1

    scheduler = PhaseScheduler(timing=_resolve_timing(args), timer_source=_NoTimers())
    info = {
        "index": args.index,
        "total": total,
        "slide": descriptor.kind.value,
        "ordinal": descriptor.ordinal,
    }
    if descriptor.is_product:
        info["delays_ms"] = [
            scheduler.compute_delay(descriptor, SubPhase.HEADLINE),
            scheduler.compute_delay(descriptor, SubPhase.DETAIL),
        ]
    else:
        info["delays_ms"] = [scheduler.compute_delay(descriptor, SubPhase.HEADLINE)]
    print(json.dumps(info))
    return 0


class _NoTimers:
    """Timer source for commands that only compute delays."""

    def arm(self, delay_ms, callback):
        raise RuntimeError("timers are not available in this command")


def selftest() -> int:
    """Fast import-and-simulate smoke test. Returns exit code."""
    try:
        import PyQt6.QtCore  # noqa: F401  # Ensure Qt timer backend imports
        from .devtools.manual_clock import ManualTimerSource
        from .sequencer import Item

        clock = ManualTimerSource()
        with SequencerController(timer_source=clock) as controller:
            controller.on_supply_changed(ItemSupply.ready([Item("selftest")]))
            clock.run_until_idle()
            if not controller.is_alternate():
                raise RuntimeError(f"Expected alternate mode, got {controller.mode.name}")

        msg = "Selftest OK: imports + one simulated cycle"
        logging.getLogger(__name__).info(msg)
        print(msg)
        return 0
    except Exception as e:
        logging.getLogger(__name__).error("Selftest failed: %s", e)
        print(f"Selftest failed: {e}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    logging_parent = _build_logging_parent()
    parser = argparse.ArgumentParser(
        prog="wrapreel",
        description=f"{__app_name__} CLI",
        parents=[logging_parent],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub_logging_parent = _build_logging_parent(suppress_defaults=True)
    sub = parser.add_subparsers(dest="command", required=False)

    def add_subparser(name: str, **kwargs: object) -> argparse.ArgumentParser:
        parents = list(kwargs.pop("parents", []))
        parents.insert(0, sub_logging_parent)
        return sub.add_parser(name, parents=parents, **kwargs)

    timing_parent = argparse.ArgumentParser(add_help=False)
    timing_parent.add_argument(
        "--time-scale",
        type=_positive_float,
        default=None,
        metavar="F",
        help="Multiply every slide duration by F (overrides WRAPREEL_TIME_SCALE)",
    )

    items_parent = argparse.ArgumentParser(add_help=False)
    items_parent.add_argument("items", help="Path to items JSON (list, or object with 'items')")
    items_parent.add_argument("--limit", type=int, default=None, help="Present at most N items")
    items_parent.add_argument("--json", action="store_true", help="Print one JSON object per event")

    p_run = add_subparser("run", parents=[items_parent, timing_parent], help="Play the sequence with real timers")
    p_run.add_argument("--timeout", type=_positive_float, default=None, help="Give up after N seconds (exit 2)")
    p_run.add_argument("--loop", type=int, default=0, help="Restart from the intro N extra times")

    add_subparser("plan", parents=[items_parent, timing_parent], help="Print the simulated timeline of one cycle")

    p_cls = add_subparser("classify", parents=[timing_parent], help="Classify one slide index")
    p_cls.add_argument("index", type=int, help="Slide index")
    p_cls.add_argument("--items", type=int, required=True, help="Number of items")

    add_subparser("selftest", help="Quick environment/import check")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging before doing any work
    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        json_format=(args.log_format == "json"),
        log_mode=args.log_mode,
        add_console=True,
    )

    cmd = args.command
    if cmd == "run":
        return cmd_run(args)
    if cmd == "plan":
        return cmd_plan(args)
    if cmd == "classify":
        return cmd_classify(args)
    if cmd == "selftest":
        return selftest()

    parser.print_help()
    return 1
