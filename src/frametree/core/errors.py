from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .pose import Pose


class LookupErrorCode(str, Enum):
    FRAME_NOT_FOUND = "frame_not_found"
    NO_DATA_FOR_FRAME = "no_data_for_frame"
    FRAMES_NOT_CONNECTED = "frames_not_connected"
    CYCLE_DETECTED = "cycle_detected"


class TransformLookupError(LookupError):
    """Raised by `LookupResult.unwrap()` for callers that prefer exceptions."""

    def __init__(self, code: LookupErrorCode, message: str, frame: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.frame = frame


@dataclass(frozen=True)
class LookupResult:
    """Outcome of a transform lookup.

    Lookups never raise: a missing transform is an ordinary result so a
    renderer can skip one element and keep drawing the rest.
    """

    pose: Pose | None = None
    error: LookupErrorCode | None = None
    frame: str | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Pose:
        if self.error is not None or self.pose is None:
            raise TransformLookupError(
                self.error or LookupErrorCode.FRAMES_NOT_CONNECTED,
                self.message,
                self.frame,
            )
        return self.pose

    @classmethod
    def success(cls, pose: Pose) -> "LookupResult":
        return cls(pose=pose)

    @classmethod
    def frame_not_found(cls, frame: str) -> "LookupResult":
        return cls(
            error=LookupErrorCode.FRAME_NOT_FOUND,
            frame=frame,
            message=f"Frame '{frame}' does not exist",
        )

    @classmethod
    def no_data_for_frame(cls, frame: str) -> "LookupResult":
        return cls(
            error=LookupErrorCode.NO_DATA_FOR_FRAME,
            frame=frame,
            message=f"Frame '{frame}' has no transform data",
        )

    @classmethod
    def frames_not_connected(cls, target: str, source: str) -> "LookupResult":
        return cls(
            error=LookupErrorCode.FRAMES_NOT_CONNECTED,
            frame=source,
            message=f"Frames '{target}' and '{source}' have no common ancestor",
        )

    @classmethod
    def cycle_detected(cls, frame: str) -> "LookupResult":
        return cls(
            error=LookupErrorCode.CYCLE_DETECTED,
            frame=frame,
            message=f"Parent chain of '{frame}' contains a cycle",
        )
