"""Device session state machine for Galahad II pump lighting.

The host drives one :class:`DeviceSession` serially: ``initialize()`` once,
``render()`` at its own cadence (~30 Hz), then ``shutdown()`` once.

States::

    CLOSED -> INITIALIZING -> READY <-> ERROR -> RECOVERING -> READY | ERROR
                                                    (any) -> CLOSED on shutdown

Bring-up delays are scheduler continuations, so neither ``initialize()``
nor ``render()`` ever sleeps. Transport failures are counted and logged;
``render()`` and ``shutdown()`` never raise.
"""

import logging
import time
from collections.abc import Callable, Sequence
from enum import Enum
from types import TracebackType
from typing import Self

from galahad_rgb.config import SessionConfig, resolve_ring_counts
from galahad_rgb.constants import (
    APPLY_FRAME_INTERVAL,
    BRIGHTNESS_FRAME_INTERVAL,
    CMD_APPLY,
    CMD_INITIALIZE,
    CMD_RESET,
    CMD_SET_BRIGHTNESS,
    CMD_SET_INDIVIDUAL_COLOR,
    CMD_SET_LED_COUNT,
    CMD_SET_ZONE_COLOR,
    DEFAULT_HEADER,
    HEADER_CANDIDATES,
    INIT_RGB_MODE,
    INITIALIZE_SETTLE_DELAY,
    LED_COUNT_SETTLE_DELAY,
    MAX_ERRORS,
    RECOVERY_ERROR_THRESHOLD,
    RECOVERY_FRAME_INTERVAL,
    RESET_SETTLE_DELAY,
    RING_GAP_DELAY,
    SHUTDOWN_STEP_DELAY,
    ZONE_ALL,
    ZONE_INNER,
    ZONE_OUTER,
)
from galahad_rgb.device import Transport
from galahad_rgb.exceptions import (
    BringUpError,
    GalahadError,
    TransportOpenError,
    TransportWriteError,
)
from galahad_rgb.layout import LedLayout
from galahad_rgb.models import ColorSample, DeviceProfile, RingMode, get_profile
from galahad_rgb.protocol import (
    brightness_payload,
    chunk_samples,
    encode_packet,
    flatten_led_colors,
)
from galahad_rgb.sampler import Canvas, average_color, sample_colors
from galahad_rgb.scheduler import Scheduler

logger = logging.getLogger(__name__)

# Upper bound on header signatures probed during auto-detection
MAX_HEADER_PROBES = 3


class SessionState(Enum):
    """Lifecycle state of a device session."""

    CLOSED = "closed"
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"
    RECOVERING = "recovering"


class _BringUp:
    """Timer-driven step counter for the device bring-up sequence.

    Each step is (delay before it, description, frame). The first step is
    written immediately by :meth:`start`; every following step is scheduled
    once the previous one succeeded. A failed write stops the sequence.
    """

    def __init__(
        self,
        steps: Sequence[tuple[float, str, bytes]],
        write: Callable[[bytes], None],
        scheduler: Scheduler,
        is_current: Callable[[], bool],
        on_finished: Callable[[BringUpError | None], None],
    ) -> None:
        self._steps = steps
        self._write = write
        self._scheduler = scheduler
        self._is_current = is_current
        self._on_finished = on_finished
        self._index = 0

    @property
    def step(self) -> int:
        return self._index

    def start(self) -> None:
        self._run_step()

    def _run_step(self) -> None:
        # Session was shut down or re-initialized while this step was pending
        if not self._is_current():
            return

        _, description, frame = self._steps[self._index]
        try:
            self._write(frame)
        except TransportWriteError as e:
            msg = f"Bring-up step {self._index + 1} ({description}) failed: {e}"
            self._on_finished(BringUpError(msg))
            return
        logger.debug("Bring-up step %d: %s", self._index + 1, description)

        self._index += 1
        if self._index == len(self._steps):
            self._on_finished(None)
            return
        delay = self._steps[self._index][0]
        self._scheduler.call_later(delay, self._run_step)


class DeviceSession:
    """Owns one pump connection and turns canvas frames into packets.

    Example:
        session = DeviceSession(HIDTransport(), canvas, SessionConfig())
        session.initialize()
        while running:
            session.render()
            wait(1 / 30)
        session.shutdown()
    """

    def __init__(
        self,
        transport: Transport,
        canvas: Canvas,
        config: SessionConfig | None = None,
        scheduler: Scheduler | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the session wrapper. Nothing is opened yet.

        Args:
            transport: Transport to the pump's lighting endpoint.
            canvas: Host canvas sampled every frame.
            config: Host settings; defaults are used if omitted.
            scheduler: Scheduler for bring-up continuations.
            sleep: Blocking wait used only between shutdown writes.
        """
        self._transport = transport
        self._canvas = canvas
        self._config = config if config is not None else SessionConfig()
        self._scheduler = scheduler if scheduler is not None else Scheduler()
        self._sleep = sleep
        self._layout: LedLayout | None = None
        self._generation = 0
        self._reset_state()

    def _reset_state(self) -> None:
        self._state = SessionState.CLOSED
        self._opened = False
        self._initialization_complete = False
        self._profile: DeviceProfile | None = None
        self._per_led = False
        self._header = DEFAULT_HEADER
        self._frame_counter = 0
        self._error_count = 0
        self._last_fingerprint: tuple[tuple[ColorSample, ...], ...] | None = None
        self._last_error: GalahadError | None = None

    def __enter__(self) -> Self:
        """Initialize the session."""
        self.initialize()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Shut the session down."""
        self.shutdown()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def initialization_complete(self) -> bool:
        """True once a full bring-up sequence has succeeded."""
        return self._initialization_complete

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def profile(self) -> DeviceProfile | None:
        """Profile of the connected model, or None if it is unknown."""
        return self._profile

    @property
    def layout(self) -> LedLayout:
        """Current LED layout. Built from the config before initialization."""
        if self._layout is None:
            outer, inner = resolve_ring_counts(
                self._config.profile, self._config.led_count
            )
            self._layout = LedLayout.build(outer, inner)
        return self._layout

    @property
    def header(self) -> tuple[int, int]:
        """Header signature used for every encoded frame."""
        return self._header

    @property
    def frame_counter(self) -> int:
        return self._frame_counter

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def last_error(self) -> GalahadError | None:
        """Most recent open or bring-up failure, for diagnostics."""
        return self._last_error

    def initialize(self, config: SessionConfig | None = None) -> bool:
        """Open the transport and start the bring-up sequence.

        Failures are logged, not raised. Calling this again after a failure
        (or on a running session) starts over from a fresh handle.

        Args:
            config: New host settings, or None to keep the current ones.

        Returns:
            False if the handle could not be acquired or the first bring-up
            write failed, True otherwise. The session becomes ready once the
            remaining (scheduled) steps have run.
        """
        if config is not None:
            self._config = config
        if self._opened:
            self._scheduler.cancel_all()
            self._transport.close()
        self._reset_state()
        self._generation += 1

        try:
            self._transport.open()
        except TransportOpenError as e:
            logger.error("Failed to open pump: %s", e)
            self._last_error = e
            return False
        self._opened = True

        self._profile = self._config.profile or get_profile(
            self._transport.product_id
        )
        outer, inner = resolve_ring_counts(self._profile, self._config.led_count)
        layout = self._layout
        if layout is None or (layout.outer_count, layout.inner_count) != (
            outer,
            inner,
        ):
            self._layout = LedLayout.build(outer, inner)

        self._per_led = self._config.per_led_mode and (
            self._profile is None or self._profile.supports_per_led
        )
        if self._config.auto_detect_header:
            self._header = self._detect_header()

        logger.info(
            "Initializing %s (%d outer + %d inner LEDs, header %02X %02X)",
            self._profile.name if self._profile else "unknown pump",
            outer,
            inner,
            *self._header,
        )
        self._state = SessionState.INITIALIZING
        self._start_bring_up(self._on_initial_bring_up)
        return self._last_error is None

    def poll(self) -> None:
        """Run scheduled continuations that are due."""
        self._scheduler.run_pending()

    def render(self) -> None:
        """Sample the canvas and send one frame of colors.

        No-op unless the session is ready. After more than MAX_ERRORS write
        failures only frame counting continues, so recovery can be retried
        every RECOVERY_FRAME_INTERVAL frames.
        """
        self.poll()

        if self._state is SessionState.READY:
            self._frame_counter += 1
            try:
                self._render_frame()
            except TransportWriteError as e:
                self._record_error(e)
        elif self._state is SessionState.ERROR:
            self._frame_counter += 1
        else:
            return

        if (
            self._error_count > RECOVERY_ERROR_THRESHOLD
            and self._frame_counter % RECOVERY_FRAME_INTERVAL == 0
        ):
            self._start_recovery()

    def shutdown(self) -> None:
        """Blank the pump, reset it and release the handle.

        Every write is best-effort. Session state is reset even if the
        writes fail. No-op if the session was never opened.
        """
        if not self._opened:
            return

        logger.info("Shutting down pump lighting")
        self._scheduler.cancel_all()
        self._generation += 1

        steps = (
            ("blank", self._encode(CMD_SET_ZONE_COLOR, bytes(3), zone=ZONE_ALL)),
            ("apply", self._encode(CMD_APPLY)),
            ("reset", self._encode(CMD_RESET)),
        )
        for i, (description, frame) in enumerate(steps):
            if i:
                self._sleep(SHUTDOWN_STEP_DELAY)
            try:
                self._transport.write(frame)
            except TransportWriteError as e:
                logger.debug("Shutdown %s write failed: %s", description, e)

        try:
            self._transport.close()
        finally:
            self._reset_state()

    def _encode(
        self, command: int, payload: bytes = b"", zone: int = ZONE_ALL
    ) -> bytes:
        return encode_packet(command, payload, zone=zone, header=self._header)

    def _bring_up_steps(self) -> list[tuple[float, str, bytes]]:
        total = self.layout.total_count
        brightness = self._config.brightness
        return [
            (0.0, "reset", self._encode(CMD_RESET)),
            (
                RESET_SETTLE_DELAY,
                f"set LED count {total}",
                self._encode(CMD_SET_LED_COUNT, bytes([total])),
            ),
            (
                LED_COUNT_SETTLE_DELAY,
                "enable RGB mode",
                self._encode(CMD_INITIALIZE, INIT_RGB_MODE),
            ),
            (
                INITIALIZE_SETTLE_DELAY,
                f"set brightness {brightness}%",
                self._encode(CMD_SET_BRIGHTNESS, brightness_payload(brightness)),
            ),
        ]

    def _start_bring_up(
        self, on_finished: Callable[[BringUpError | None], None]
    ) -> None:
        generation = self._generation
        bring_up = _BringUp(
            self._bring_up_steps(),
            self._transport.write,
            self._scheduler,
            lambda: generation == self._generation,
            on_finished,
        )
        bring_up.start()

    def _on_initial_bring_up(self, error: BringUpError | None) -> None:
        if error is not None:
            logger.warning("Initialization failed: %s", error)
            self._last_error = error
            self._initialization_complete = False
            return
        logger.info("Pump initialized")
        self._initialization_complete = True
        self._state = SessionState.READY

    def _start_recovery(self) -> None:
        logger.info(
            "Attempting recovery (errors=%d, frame=%d)",
            self._error_count,
            self._frame_counter,
        )
        self._state = SessionState.RECOVERING
        # Reset blanks the pump, so the next frame must be sent in full
        self._last_fingerprint = None
        self._start_bring_up(self._on_recovery)

    def _on_recovery(self, error: BringUpError | None) -> None:
        if error is not None:
            logger.warning("Recovery failed: %s", error)
            self._last_error = error
            self._state = (
                SessionState.ERROR
                if self._error_count > MAX_ERRORS
                else SessionState.READY
            )
            return
        logger.info("Recovery succeeded")
        self._error_count = 0
        self._last_fingerprint = None
        self._initialization_complete = True
        self._state = SessionState.READY

    def _record_error(self, error: TransportWriteError) -> None:
        self._error_count += 1
        self._last_fingerprint = None
        logger.warning(
            "Render error (frame %d, errors %d): %s",
            self._frame_counter,
            self._error_count,
            error,
        )
        if self._error_count > MAX_ERRORS and self._state is SessionState.READY:
            logger.error("Too many errors, pausing render until recovery")
            self._state = SessionState.ERROR

    def _detect_header(self) -> tuple[int, int]:
        """Probe header signatures with a minimal initialize packet.

        The first candidate whose write does not fail is kept.
        """
        for name, header in HEADER_CANDIDATES[:MAX_HEADER_PROBES]:
            probe = encode_packet(CMD_INITIALIZE, b"\x00", header=header)
            try:
                self._transport.write(probe)
            except TransportWriteError as e:
                logger.debug("Header %s rejected: %s", name, e)
                continue
            logger.info("Protocol detected: %s", name)
            return header
        logger.info("No protocol detected, using default header")
        return DEFAULT_HEADER

    def _render_frame(self) -> None:
        ring_mode = self._config.ring_mode
        apply_due = self._frame_counter % APPLY_FRAME_INTERVAL == 0
        deferred = False
        if ring_mode is RingMode.INDEPENDENT:
            deferred = self._render_independent(apply_due)
        else:
            self._render_combined(ring_mode)

        if apply_due and not deferred:
            self._transport.write(self._encode(CMD_APPLY))
        if self._frame_counter % BRIGHTNESS_FRAME_INTERVAL == 0:
            self._transport.write(
                self._encode(
                    CMD_SET_BRIGHTNESS, brightness_payload(self._config.brightness)
                )
            )

    def _sample(self, indices: Sequence[int]) -> list[ColorSample]:
        return sample_colors(
            self._canvas,
            self.layout,
            indices,
            self._per_led,
            self._config.brightness,
        )

    def _render_combined(self, ring_mode: RingMode) -> None:
        samples = self._sample(self.layout.active_indices(ring_mode))
        if not samples:
            return

        fingerprint = (tuple(samples),)
        if fingerprint == self._last_fingerprint:
            return

        distinct = len({sample.rgb for sample in samples})
        if self._per_led and distinct > 1:
            for chunk in chunk_samples(samples):
                self._transport.write(
                    self._encode(
                        CMD_SET_INDIVIDUAL_COLOR,
                        flatten_led_colors(chunk),
                        zone=ring_mode.zone,
                    )
                )
        else:
            self._transport.write(
                self._encode(
                    CMD_SET_ZONE_COLOR,
                    bytes(average_color(samples)),
                    zone=ring_mode.zone,
                )
            )
        self._last_fingerprint = fingerprint

    def _render_independent(self, apply_due: bool) -> bool:
        """Send the outer ring now and schedule the inner ring.

        The inner ring is written RING_GAP_DELAY later, on the first poll
        after that delay (in practice the next render). A due Apply is
        deferred to follow it so both rings change together.

        Returns:
            True if the inner ring (and any due Apply) was deferred.
        """
        outer = self._sample(self.layout.outer_indices)
        inner = self._sample(self.layout.inner_indices)

        fingerprint = (tuple(outer), tuple(inner))
        if fingerprint == self._last_fingerprint:
            return False

        self._send_ring(outer, ZONE_OUTER)
        self._last_fingerprint = fingerprint
        if not inner:
            return False

        generation = self._generation
        self._scheduler.call_later(
            RING_GAP_DELAY,
            lambda: self._send_inner_ring(generation, inner, apply_due),
        )
        return True

    def _send_inner_ring(
        self, generation: int, samples: list[ColorSample], apply: bool
    ) -> None:
        if generation != self._generation or self._state is not SessionState.READY:
            return
        try:
            self._send_ring(samples, ZONE_INNER)
            if apply:
                self._transport.write(self._encode(CMD_APPLY))
        except TransportWriteError as e:
            self._record_error(e)

    def _send_ring(self, samples: list[ColorSample], zone: int) -> None:
        if not samples:
            return
        if self._per_led and len(samples) > 1:
            for chunk in chunk_samples(samples):
                self._transport.write(
                    self._encode(
                        CMD_SET_INDIVIDUAL_COLOR, flatten_led_colors(chunk), zone=zone
                    )
                )
        else:
            self._transport.write(
                self._encode(
                    CMD_SET_ZONE_COLOR, bytes(average_color(samples)), zone=zone
                )
            )
