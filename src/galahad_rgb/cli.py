"""Command-line interface for Galahad II pump lighting."""

import argparse
import logging
import sys
import time
from pathlib import Path

from galahad_rgb import __version__
from galahad_rgb._signal import render_loop
from galahad_rgb.canvas import ImageCanvas, load_frames, solid_canvas
from galahad_rgb.config import MODEL_CHOICES, SessionConfig
from galahad_rgb.constants import (
    DEFAULT_BRIGHTNESS,
    DEFAULT_LED_COUNT,
    FRAME_RATE,
)
from galahad_rgb.device import HIDTransport
from galahad_rgb.diagnostics import describe_endpoints, run_selftest
from galahad_rgb.exceptions import (
    ConfigError,
    GalahadError,
    ImageError,
    TransportOpenError,
)
from galahad_rgb.models import RingMode
from galahad_rgb.session import DeviceSession, SessionState

# Epilog text for main parser
MAIN_EPILOG = """\
examples:
  galahad detect                       List Lian Li HID endpoints
  galahad run --color red              Light both rings red
  galahad run --image rainbow.gif      Play an animation on the rings
  galahad selftest                     Check protocol packets offline
  galahad selftest --send              Send the test packets to the pump

supported pumps:
  Galahad II Trinity (0x7373), Trinity Performance (0x7371), LCD (0x7395)

Close L-Connect before using these commands.
"""

RUN_EPILOG = """\
examples:
  galahad run --color "#ff8800"                   Solid orange
  galahad run --image logo.png --brightness 40    Sample an image at 40%
  galahad run --color blue --ring-mode outer      Outer ring only
  galahad run --image fire.gif --no-per-led       One averaged color

ring modes:
  combined     both rings as one zone (default)
  outer        outer ring only
  inner        inner ring only
  independent  outer and inner rings sent as separate zones

Press Ctrl+C to exit.
"""

RING_MODE_ARGS = {
    "combined": RingMode.COMBINED,
    "outer": RingMode.OUTER,
    "inner": RingMode.INNER,
    "independent": RingMode.INDEPENDENT,
}

MODEL_ARGS = {
    "trinity": MODEL_CHOICES["Trinity (0x7373)"],
    "trinity-performance": MODEL_CHOICES["Trinity Performance (0x7371)"],
    "lcd": MODEL_CHOICES["LCD (0x7395)"],
}

# Seconds to wait for the bring-up sequence before giving up
BRING_UP_TIMEOUT = 2.0


def cmd_detect(args: argparse.Namespace) -> int:
    """List Lian Li HID endpoints and whether they would be used."""
    try:
        rows = describe_endpoints()
    except OSError as e:
        print(f"Error: HID enumeration failed: {e}", file=sys.stderr)
        return 1

    if not rows:
        print("No Lian Li devices found (VID 0x0416).", file=sys.stderr)
        print("Ensure the pump USB cable is connected and L-Connect is closed.")
        return 1

    print(f"Found {len(rows)} Lian Li HID interface(s):")
    for row in rows:
        marker = "*" if row["matched"] else " "
        print(
            f" {marker} {row['name']} (PID 0x{row['product_id']:04X}) "
            f"interface={row['interface']} usage=0x{row['usage']:04X} "
            f"usage_page=0x{row['usage_page']:04X}"
        )
    if not any(row["matched"] for row in rows):
        print("No endpoint matches a supported pump profile.", file=sys.stderr)
        return 1
    return 0


def cmd_selftest(args: argparse.Namespace) -> int:
    """Check the protocol packet suite, optionally sending it."""
    transport = None
    if args.send:
        transport = HIDTransport(product_id=MODEL_ARGS.get(args.model))
        try:
            transport.open()
        except TransportOpenError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print("CAUTION: testing with real hardware - lighting will change!")

    try:
        results = run_selftest(transport)
    finally:
        if transport is not None:
            transport.close()

    for i, result in enumerate(results, start=1):
        status = "PASS" if result.passed else "FAIL"
        print(f"{i:2d}. [{status}] {result.name}")
        for error in result.errors:
            print(f"      {error}")

    passed = sum(result.passed for result in results)
    print(f"\n{passed}/{len(results)} passed")
    return 0 if passed == len(results) else 1


def cmd_run(args: argparse.Namespace) -> int:
    """Drive the pump from a solid color or image until interrupted."""
    try:
        config = SessionConfig(
            led_count=args.led_count,
            brightness=args.brightness,
            ring_mode=RING_MODE_ARGS[args.ring_mode],
            per_led_mode=args.per_led,
            model=MODEL_ARGS.get(args.model),
            auto_detect_header=args.auto_detect_header,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.image is not None:
            frames, frame_time = load_frames(args.image)
            if not frames:
                print(f"Error: No frames found in image: {args.image}", file=sys.stderr)
                return 1
            canvas = ImageCanvas(frames[0])
        else:
            frames, frame_time = [], 0.0
            canvas = solid_canvas(args.color)
    except (ImageError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    session = DeviceSession(HIDTransport(product_id=config.model), canvas, config)
    if not session.initialize():
        print(f"Error: {session.last_error}", file=sys.stderr)
        return 1

    try:
        with render_loop() as is_running:
            deadline = time.monotonic() + BRING_UP_TIMEOUT
            while is_running() and session.state is SessionState.INITIALIZING:
                if session.last_error is not None or time.monotonic() > deadline:
                    print(f"Error: {session.last_error}", file=sys.stderr)
                    return 1
                session.poll()
                is_running.wait(0.01)
            if not is_running():
                return 0

            name = session.profile.name if session.profile else "pump"
            print(f"Driving {name}. Press Ctrl+C to exit.")

            frame_index = 0
            next_swap = time.monotonic() + frame_time
            while is_running():
                if len(frames) > 1 and time.monotonic() >= next_swap:
                    frame_index = (frame_index + 1) % len(frames)
                    canvas.set_image(frames[frame_index])
                    next_swap += frame_time
                session.render()
                is_running.next_frame(1 / FRAME_RATE)
    finally:
        session.shutdown()

    print()
    return 0


def main() -> int:
    """Main entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="galahad",
        description="Lian Li Galahad II AIO pump lighting tools.",
        epilog=MAIN_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="log more detail (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        title="commands",
        metavar="<command>",
    )

    detect_parser = subparsers.add_parser(
        "detect",
        help="list Lian Li HID endpoints",
        description="List Lian Li HID endpoints; '*' marks the lighting endpoint.",
    )
    detect_parser.set_defaults(func=cmd_detect)

    run_parser = subparsers.add_parser(
        "run",
        help="drive the pump lighting from a color or image",
        description=(
            "Sample a solid color or an image/GIF at 30 fps and send it to "
            "the pump's LED rings."
        ),
        epilog=RUN_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = run_parser.add_mutually_exclusive_group()
    source.add_argument(
        "--color",
        default="white",
        help="color name or hex code (default: white)",
    )
    source.add_argument(
        "--image",
        type=Path,
        metavar="FILE",
        default=None,
        help="image or GIF to sample",
    )
    run_parser.add_argument(
        "--brightness",
        type=int,
        metavar="PCT",
        default=DEFAULT_BRIGHTNESS,
        help=f"brightness 1-100 (default: {DEFAULT_BRIGHTNESS})",
    )
    run_parser.add_argument(
        "--ring-mode",
        choices=list(RING_MODE_ARGS),
        default="combined",
        help="which rings to drive (default: combined)",
    )
    run_parser.add_argument(
        "--no-per-led",
        dest="per_led",
        action="store_false",
        help="send one averaged color instead of per-LED colors",
    )
    run_parser.add_argument(
        "--led-count",
        type=int,
        metavar="N",
        default=DEFAULT_LED_COUNT,
        help=(
            "total LED count 12-64, only used for unrecognized pumps "
            f"(default: {DEFAULT_LED_COUNT})"
        ),
    )
    _add_model_argument(run_parser)
    run_parser.add_argument(
        "--auto-detect-header",
        action="store_true",
        help="probe alternate protocol headers before initializing",
    )
    run_parser.set_defaults(func=cmd_run)

    selftest_parser = subparsers.add_parser(
        "selftest",
        help="check protocol packets (optionally on hardware)",
        description=(
            "Build the protocol test packets and check their structure. "
            "With --send, also write them to the pump."
        ),
    )
    selftest_parser.add_argument(
        "--send",
        action="store_true",
        help="write the packets to the connected pump",
    )
    _add_model_argument(selftest_parser)
    selftest_parser.set_defaults(func=cmd_selftest)

    args = parser.parse_args()

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        result: int = args.func(args)
    except GalahadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return result


def _add_model_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--model",
        choices=list(MODEL_ARGS),
        default=None,
        help="pump model (default: detect from the connected device)",
    )


if __name__ == "__main__":
    sys.exit(main())
