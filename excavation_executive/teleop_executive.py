"""
Teleop Executive for the excavation robot

Processes operator commands one at a time and turns them into drive
messages, bin commands and digging tasks. Every command cycle ends in exactly
one of SUCCEEDED, PREEMPTED or ABORTED.

Commands supported:
- Stop drivebase / stop turntable
- Move: forward, backward, left, right, clockwise, counterclockwise
- Dig: digs for a duration supplied by the digging time service, preemptible
- Dump: raises the bin until the bin state service confirms it, preemptible
- Reset dumping: lowers the bin until confirmed, preemptible
- Reset starting: stops the drivebase

Emergency stop is not handled here; the control system owns it directly.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

from .codes import BinCode, CommandCode
from .config import BinAngles, DriveVelocity
from .exceptions import ExecutiveBusyError, ExecutiveError, ServiceCallError
from .geometry import Twist
from .ports import (
    BinPublisher, BinStateService, CancellationToken, DiggingGoal,
    DiggingTimeService, DrivePublisher, SubordinateTask,
)
from .results import CycleResult, ExecutiveState, Outcome

logger = logging.getLogger(__name__)

LOG_PREFIX = "Teleop Action Server"


class TeleopExecutive:
    """
    Single-goal command dispatcher.

    A command is only accepted once the previous cycle reached a terminal
    state. Long running commands (dig, dump, reset dumping) poll for
    preemption once per period and never block on anything but the remote
    call or subordinate task already in progress.
    """

    def __init__(self,
                 drive_publisher: DrivePublisher,
                 bin_publisher: BinPublisher,
                 digging_time_service: DiggingTimeService,
                 bin_state_service: BinStateService,
                 digging_task: SubordinateTask,
                 drive_stats: DriveVelocity,
                 bin_angles: BinAngles,
                 poll_period: float,
                 sleep: Callable[[float], None] = time.sleep):
        self._drive_publisher = drive_publisher
        self._bin_publisher = bin_publisher
        self._digging_time = digging_time_service
        self._bin_state = bin_state_service
        self._digging_task = digging_task
        self._drive_stats = drive_stats
        self._bin_angles = bin_angles
        self._poll_period = poll_period
        self._sleep = sleep

        self._cycle_lock = threading.Lock()
        self.state = ExecutiveState.IDLE
        self.current_command: Optional[CommandCode] = None

        self._long_running: Dict[CommandCode, Callable[[CancellationToken], CycleResult]] = {
            CommandCode.DIG: self._dig,
            CommandCode.DUMP: lambda token: self._move_bin(CommandCode.DUMP, BinCode.RAISED, token),
            CommandCode.RESET_DUMPING: lambda token: self._move_bin(
                CommandCode.RESET_DUMPING, BinCode.LOWERED, token),
        }

    @property
    def busy(self) -> bool:
        return self.state is ExecutiveState.DISPATCHING

    def drive_command(self, command: CommandCode) -> Optional[Twist]:
        """Velocity message for an immediate command, None if it publishes nothing"""
        linear = self._drive_stats.linear
        angular = self._drive_stats.angular
        commands = {
            CommandCode.STOP_DRIVEBASE: Twist(),
            CommandCode.RESET_STARTING: Twist(),
            CommandCode.FORWARD: Twist(linear=linear),
            CommandCode.BACKWARD: Twist(linear=-linear),
            CommandCode.LEFT: Twist(angular=angular),
            CommandCode.RIGHT: Twist(angular=-angular),
            CommandCode.CLOCKWISE: Twist(angular=angular),
            CommandCode.COUNTERCLOCKWISE: Twist(angular=-angular),
        }
        return commands.get(command)

    def process_command(self, code: int,
                        cancel_token: Optional[CancellationToken] = None) -> CycleResult:
        """Run one command cycle to a terminal outcome"""
        if not self._cycle_lock.acquire(blocking=False):
            raise ExecutiveBusyError(
                f"Command {code} rejected, {self.current_command} still in flight")

        token = cancel_token or CancellationToken()
        start_time = time.monotonic()
        try:
            self.state = ExecutiveState.DISPATCHING
            result = self._dispatch(code, token)
            result.duration = time.monotonic() - start_time
            return result
        finally:
            self.current_command = None
            self.state = ExecutiveState.IDLE
            self._cycle_lock.release()

    def _dispatch(self, code: int, token: CancellationToken) -> CycleResult:
        command = CommandCode.parse(code)
        if command is None:
            logger.warning(f"{LOG_PREFIX}: UNRECOGNIZED COMMAND {code}")
            return CycleResult(
                outcome=Outcome.ABORTED,
                message=f"Unrecognized command code {code}",
                error_code="UNRECOGNIZED_COMMAND"
            )

        self.current_command = command
        logger.info(f"{LOG_PREFIX}: Command Received, {command.name}")

        handler = self._long_running.get(command)
        if handler is not None:
            return handler(token)

        if command is CommandCode.STOP_TURNTABLE:
            # TODO: publish a turntable stop once manual turntable control exists
            return CycleResult(Outcome.SUCCEEDED, "Turntable stop acknowledged")

        self._drive_publisher.publish_drive(self.drive_command(command))
        return CycleResult(Outcome.SUCCEEDED, f"{command.name} published")

    # ========== Digging ==========

    def _dig(self, token: CancellationToken) -> CycleResult:
        logger.info(f"{LOG_PREFIX}: retrieving digging time")
        try:
            digging_time = self._digging_time.get_digging_time()
        except ServiceCallError as e:
            logger.error(f"{LOG_PREFIX}: could not retrieve digging time: {e}")
            return CycleResult(
                outcome=Outcome.ABORTED,
                message=str(e),
                error_code="DIGGING_TIME_UNAVAILABLE"
            )
        logger.info(f"{LOG_PREFIX}: digging time retrieved {digging_time:.3f}s")

        try:
            handle = self._digging_task.send_goal(DiggingGoal(digging_time=digging_time))
        except ExecutiveError as e:
            logger.error(f"{LOG_PREFIX}: digging goal could not be sent: {e}")
            return CycleResult(Outcome.ABORTED, str(e), error_code="DIGGING_UNAVAILABLE")

        while not handle.done():
            if token.cancelled:
                handle.cancel()
                logger.info(f"{LOG_PREFIX}: digging preempted")
                return CycleResult(Outcome.PREEMPTED, "Digging preempted")
            self._sleep(self._poll_period)

        try:
            handle.result()
        except ExecutiveError as e:
            logger.error(f"{LOG_PREFIX}: digging failed: {e}")
            return CycleResult(Outcome.ABORTED, str(e), error_code="DIGGING_FAILED")

        logger.info(f"{LOG_PREFIX}: digging finished")
        return CycleResult(Outcome.SUCCEEDED, "Digging finished", data=digging_time)

    # ========== Dumping bin ==========

    def _bin_angle(self, target: BinCode) -> float:
        if target is BinCode.RAISED:
            return self._bin_angles.raised
        return self._bin_angles.lowered

    def _move_bin(self, command: CommandCode, target: BinCode,
                  token: CancellationToken) -> CycleResult:
        """Command the bin toward target until the bin state service confirms it"""
        self._drive_publisher.publish_drive(Twist())
        angle = self._bin_angle(target)

        while not token.cancelled:
            try:
                state = self._bin_state.get_bin_state()
            except ServiceCallError as e:
                logger.warning(f"{LOG_PREFIX}: bin state unavailable, retrying: {e}")
                self._sleep(self._poll_period)
                continue

            if state is target:
                logger.info(f"{LOG_PREFIX}: {command.name} finished")
                return CycleResult(Outcome.SUCCEEDED, f"Bin {target.name.lower()}")

            self._bin_publisher.publish_bin(angle)
            self._sleep(self._poll_period)

        logger.info(f"{LOG_PREFIX}: {command.name} preempted")
        return CycleResult(Outcome.PREEMPTED, f"{command.name} preempted")
