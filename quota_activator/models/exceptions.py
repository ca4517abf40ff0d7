from typing import Optional


class QuotaActivatorError(Exception):
    """Base class for predictable, operator-facing errors."""


class InvalidFormat(QuotaActivatorError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"target time must be in HH:MM format, got: {value!r}")


class ConfigurationError(QuotaActivatorError):
    pass


class UnsupportedPlatformError(ConfigurationError):
    def __init__(self, platform_type: str, supported=()):
        self.platform_type = platform_type
        self.supported = list(supported)
        message = f"platform.type '{platform_type}' is not supported"
        if self.supported:
            message += f" (supported: {', '.join(self.supported)})"
        super().__init__(message)


class ConflictError(QuotaActivatorError):
    """
    Two target times whose quota windows overlap.

    `target_a`'s trigger falls inside the window `[window_start, window_end)`
    opened by `target_b`'s trigger.
    """

    def __init__(
        self,
        target_a: str,
        target_b: str,
        trigger_a: str,
        trigger_b: str,
        window_start: str,
        window_end: str,
        interval_hours: int,
    ):
        self.target_a = target_a
        self.target_b = target_b
        self.trigger_a = trigger_a
        self.trigger_b = trigger_b
        self.window_start = window_start
        self.window_end = window_end
        self.interval_hours = interval_hours
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return (
            f"conflicting target times: {self.target_a} and {self.target_b}\n"
            f"  Trigger for {self.target_a} would be at {self.trigger_a}\n"
            f"  Trigger for {self.target_b} would be at {self.trigger_b}\n"
            f"  The trigger for {self.target_a} falls within the quota validity period "
            f"[{self.window_start}, {self.window_end}) opened for {self.target_b}\n"
            f"  Please ensure target times are at least {self.interval_hours} hours apart"
        )

    def to_dict(self) -> dict:
        return {
            "target_a": self.target_a,
            "target_b": self.target_b,
            "trigger_a": self.trigger_a,
            "trigger_b": self.trigger_b,
            "window_start": self.window_start,
            "window_end": self.window_end,
            "interval_hours": self.interval_hours,
        }


class DuplicateTargetError(ConflictError):
    def _build_message(self) -> str:
        return (
            f"duplicate target time: {self.target_a} is listed more than once\n"
            f"  Both entries would trigger at {self.trigger_a} and share the quota window "
            f"[{self.window_start}, {self.window_end})"
        )


class ActionFailure(QuotaActivatorError):
    """A single attempt of the trigger action failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
