#Marks otp as a package and re-exports the public API so callers can do
#from otp import setup, connect, OTPClient
#No business logic.

from .batch import BatchResult, plan_many
from .client import OTPClient
from .config import ServerSettings, settings_from_env
from .connection import OTPConnection, connect
from .errors import (
    GraphBuildError,
    JavaNotFoundError,
    JavaVersionError,
    OTPConnectionError,
    OTPError,
    OTPPlanError,
    OTPRequestError,
    OTPSetupError,
    UnsupportedPlatformError,
)
from .results import geocode_to_frame, isochrone_to_frame, itineraries_to_frame
from .server import ServerHandle, build_graph, check_setup, setup, stop

__version__ = "0.1.0"

__all__ = [
    "BatchResult",
    "GraphBuildError",
    "JavaNotFoundError",
    "JavaVersionError",
    "OTPClient",
    "OTPConnection",
    "OTPConnectionError",
    "OTPError",
    "OTPPlanError",
    "OTPRequestError",
    "OTPSetupError",
    "ServerHandle",
    "ServerSettings",
    "UnsupportedPlatformError",
    "build_graph",
    "check_setup",
    "connect",
    "geocode_to_frame",
    "isochrone_to_frame",
    "itineraries_to_frame",
    "plan_many",
    "settings_from_env",
    "setup",
    "stop",
]
