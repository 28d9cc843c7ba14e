"""
Purpose: Central configuration for running a local OTP server.
What it does:

Reads defaults from the environment (.env supported):

OTP_JAR=/opt/otp/otp-1.5.0-shaded.jar
OTP_DIR=/data/otp
OTP_ROUTER=default
OTP_MEMORY=2
OTP_PORT=8080
OTP_SECURE_PORT=8081
OTP_HOSTNAME=localhost

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# OTP 1.x only runs on Java 8, reported as "1.8.x" by `java -version`
JAVA_MIN_VERSION = 1.8
JAVA_MAX_VERSION = 1.9

GRAPH_FILENAME = "Graph.obj"
SERVER_LOG_FILENAME = "otp.log"


@dataclass(frozen=True)
class ServerSettings:
    """
    Everything needed to build a graph for, and launch, one OTP router.
    """

    otp_jar: Optional[str] = None
    data_dir: Optional[str] = None
    router: str = "default"

    # --- Java ---
    # Heap size handed to -Xmx, whole gigabytes
    memory_gb: int = 2
    analyst: bool = False

    # --- Server ---
    hostname: str = "localhost"
    port: int = 8080
    secure_port: int = 8081

    # --- Readiness polling ---
    # OTP takes a while to load a graph; wait before the first check
    startup_wait_s: float = 30
    poll_interval_s: float = 30
    poll_attempts: int = 10

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.memory_gb < 1:
            raise ValueError("memory_gb must be >= 1")

        for name in ("port", "secure_port"):
            value = getattr(self, name)
            if not 0 < value < 65536:
                raise ValueError(f"{name} must be between 1 and 65535, got {value}")

        if self.port == self.secure_port:
            raise ValueError("port and secure_port must differ")

        if self.poll_attempts < 1:
            raise ValueError("poll_attempts must be >= 1")

        if self.startup_wait_s < 0 or self.poll_interval_s < 0:
            raise ValueError("wait times cannot be negative")

        if not self.router:
            raise ValueError("router name cannot be empty")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def settings_from_env(**overrides) -> ServerSettings:
    """
    Build ServerSettings from OTP_* environment variables.
    Keyword overrides win over the environment; None overrides are ignored.
    """
    values = dict(
        otp_jar=os.getenv("OTP_JAR"),
        data_dir=os.getenv("OTP_DIR"),
        router=os.getenv("OTP_ROUTER", "default"),
        memory_gb=_env_int("OTP_MEMORY", 2),
        hostname=os.getenv("OTP_HOSTNAME", "localhost"),
        port=_env_int("OTP_PORT", 8080),
        secure_port=_env_int("OTP_SECURE_PORT", 8081),
    )
    values.update({key: value for key, value in overrides.items() if value is not None})

    settings = ServerSettings(**values)
    settings.validate()
    return settings


def connection_from_env(**overrides) -> dict:
    """
    hostname/router/port for talking to an already running OTP.
    Only what a client needs, so none of the server launch rules apply.
    """
    values = dict(
        hostname=os.getenv("OTP_HOSTNAME", "localhost"),
        router=os.getenv("OTP_ROUTER", "default"),
        port=_env_int("OTP_PORT", 8080),
    )
    values.update({key: value for key, value in overrides.items() if value is not None})
    return values
