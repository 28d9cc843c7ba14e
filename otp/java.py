#Purpose: Java detection for OTP.
#OTP 1.x is a Java 8 program, so before building a graph or starting a server
#we ask `java -version` what is installed and refuse anything else.

from __future__ import annotations

import logging
import subprocess
from typing import List, Optional

from .config import JAVA_MAX_VERSION, JAVA_MIN_VERSION
from .errors import JavaNotFoundError, JavaVersionError

logger = logging.getLogger(__name__)


def parse_java_version(line: str) -> Optional[float]:
    """
    Turn the first line of `java -version` into a comparable number.

        'java version "1.8.0_191"'          -> 1.8
        'openjdk version "11.0.2" 2019-01-15' -> 11.0
        'openjdk version "17" 2021-09-14'   -> None (no minor part)

    Returns None when no quoted major.minor version can be found.
    """
    parts = line.split('"')
    if len(parts) < 3:
        return None

    components = parts[1].split(".")[:2]
    if len(components) < 2:
        return None

    try:
        return float(f"{int(components[0])}.{int(components[1])}")
    except ValueError:
        return None


def java_version_output(java: str = "java") -> List[str]:
    """
    Run `java -version` and return its output lines.
    Java prints the version to stderr, so both streams are collected.
    """
    try:
        result = subprocess.run(
            [java, "-version"],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise JavaNotFoundError(f"Unable to detect a version of Java: {e}") from e

    lines = (result.stderr + result.stdout).splitlines()
    if not lines:
        raise JavaNotFoundError("Unable to detect a version of Java: no output from java -version")
    return lines


def detect_java_version(java: str = "java") -> Optional[float]:
    return parse_java_version(java_version_output(java)[0])


def check_java_version(java: str = "java") -> float:
    """
    Make sure a Java 8 runtime is on the PATH.
    Returns the parsed version, raises JavaVersionError otherwise.
    """
    version = detect_java_version(java)
    if version is None:
        raise JavaVersionError("unknown")

    if version < JAVA_MIN_VERSION or version >= JAVA_MAX_VERSION:
        raise JavaVersionError(version)

    logger.debug("Found Java %s", version)
    return version
