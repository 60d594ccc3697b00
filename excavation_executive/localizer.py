"""
Localization coordinator for the excavation robot

Looks for the bin's fiducial markers in on-demand camera frames and commits
the bin pose once a detection has been transformed into the base frame and
accepted by the localize point service. Transient failures are retried
forever; only preemption ends the loop without a committed point.
"""

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Optional

import numpy as np

from .config import LocalizationSettings
from .exceptions import ExecutiveBusyError, ExecutiveError, ServiceCallError, TransformError
from .geometry import PoseStamped, apply_axis_correction, axis_correction_matrix, position_tuple
from .ports import (
    CancellationToken, FrameTransformer, ImageService, LocalizePointService,
    MarkerDetection, SubordinateTask,
)
from .results import CycleResult, ExecutiveState, Outcome

logger = logging.getLogger(__name__)

LOG_PREFIX = "Localization Action Server"


class Localizer:
    """
    Retry-until-success localization loop.

    Each iteration: preemption check, image capture, marker detection,
    transform into the base frame, axis correction, commit. Any failure
    discards the attempt and starts the next iteration without backoff.
    """

    def __init__(self,
                 image_service: ImageService,
                 marker_task: SubordinateTask,
                 transformer: FrameTransformer,
                 localize_service: LocalizePointService,
                 settings: LocalizationSettings,
                 clock: Callable[[], float] = time.time):
        self._image_service = image_service
        self._marker_task = marker_task
        self._transformer = transformer
        self._localize_service = localize_service
        self._settings = settings
        self._correction: np.ndarray = axis_correction_matrix(settings.axis_correction)
        self._clock = clock

        self._cycle_lock = threading.Lock()
        self.state = ExecutiveState.IDLE
        self.attempts = 0
        self.last_localized: Optional[PoseStamped] = None

    @property
    def busy(self) -> bool:
        return self.state is ExecutiveState.DISPATCHING

    def localize(self, cancel_token: Optional[CancellationToken] = None) -> CycleResult:
        """Loop until a localized point is committed or preemption is requested"""
        if not self._cycle_lock.acquire(blocking=False):
            raise ExecutiveBusyError("Localization rejected, a localization goal is in flight")

        token = cancel_token or CancellationToken()
        start_time = time.monotonic()
        try:
            self.state = ExecutiveState.DISPATCHING
            self.attempts = 0
            logger.info(f"{LOG_PREFIX}: Localize Starting")

            while True:
                if token.cancelled:
                    logger.info(f"{LOG_PREFIX}: preempt requested")
                    return CycleResult(
                        outcome=Outcome.PREEMPTED,
                        message="Localization preempted",
                        duration=time.monotonic() - start_time
                    )

                self.attempts += 1
                localized = self._attempt()
                if localized is not None:
                    self.last_localized = localized
                    logger.info(f"{LOG_PREFIX}: Success after {self.attempts} attempt(s)")
                    return CycleResult(
                        outcome=Outcome.SUCCEEDED,
                        message="Bin localized",
                        duration=time.monotonic() - start_time,
                        data=localized
                    )
        finally:
            self.state = ExecutiveState.IDLE
            self._cycle_lock.release()
            logger.info(f"{LOG_PREFIX}: Localize Finished")

    def correct_detection(self, base_pose: PoseStamped) -> PoseStamped:
        """Apply the detector frame correction and stamp for the destination frame"""
        corrected = apply_axis_correction(base_pose, self._correction)
        return replace(corrected,
                       frame_id=self._settings.destination_frame,
                       stamp=self._clock())

    def _attempt(self) -> Optional[PoseStamped]:
        """One localization attempt; None means retry"""
        try:
            captured = self._image_service.capture()
        except ServiceCallError as e:
            logger.warning(f"{LOG_PREFIX}: Could not reach image client: {e}")
            return None

        try:
            handle = self._marker_task.send_goal(captured)
            detection: MarkerDetection = handle.result()
        except ExecutiveError as e:
            logger.warning(f"{LOG_PREFIX}: Could not reach aruco: {e}")
            return None

        if detection.number_found == 0 or detection.relative_pose is None:
            logger.info(f"{LOG_PREFIX}: No markers detected")
            return None

        try:
            base_pose = self._transformer.transform_pose(
                detection.relative_pose, self._settings.base_frame)
        except TransformError as e:
            logger.warning(f"{LOG_PREFIX}: Transformation failed: {e}")
            return None

        localized = self.correct_detection(base_pose)

        try:
            committed = self._localize_service.localize_point(localized)
        except ServiceCallError as e:
            logger.warning(f"{LOG_PREFIX}: localize point unavailable: {e}")
            committed = False

        if not committed:
            logger.info(f"{LOG_PREFIX}: retrying to localize movable point")
            return None

        logger.debug(f"{LOG_PREFIX}: committed point {position_tuple(localized)} "
                     f"in {localized.frame_id}")
        return localized
