#Purpose: Exception types raised by the otp package.
#Everything derives from OTPError so callers (and the CLI) can catch one type.
#Input validation problems stay plain ValueError.


class OTPError(Exception):
    """Base class for all OTP control/client errors."""
    pass


class OTPSetupError(OTPError):
    """Raised when the files OTP needs are missing or the process fails to start."""
    pass


class JavaNotFoundError(OTPSetupError):
    """Raised when `java -version` cannot be run."""
    pass


class JavaVersionError(OTPSetupError):
    """Raised when the installed Java is not the version OTP 1.x runs on."""

    def __init__(self, version, message: str = "OTP requires Java version 8"):
        super().__init__(f"{message} (found {version})")
        self.version = version


class UnsupportedPlatformError(OTPError):
    """Raised on operating systems we don't know how to drive."""
    pass


class GraphBuildError(OTPError):
    """Raised when OTP reports an error while building a graph."""

    def __init__(self, message: str, output=None):
        super().__init__(message)
        self.output = list(output or [])


class OTPConnectionError(OTPError):
    """Raised when a router cannot be reached."""
    pass


class OTPRequestError(OTPError):
    """Raised for HTTP level failures talking to a running OTP."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class OTPPlanError(OTPRequestError):
    """Raised when OTP answers a plan request with an error object."""

    def __init__(self, error_id, msg: str, message: str = ""):
        super().__init__(f"OTP error {error_id}: {message or msg}")
        self.error_id = error_id
        self.msg = msg
