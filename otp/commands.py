"""
Purpose: Command-line assembly for the OTP jar and the OS process tools.

Every builder returns an argument list ready for subprocess (no shell), and
format_command() renders it for log messages. Nothing here runs a process.
"""

from __future__ import annotations

import math
import platform
import shlex
from pathlib import Path
from typing import List, Optional

from .errors import UnsupportedPlatformError

WINDOWS = "windows"
MAC = "mac"
LINUX = "linux"


def current_os(system: Optional[str] = None) -> Optional[str]:
    """
    Normalised OS name: "windows", "mac", "linux" or None when unknown.
    """
    system = (system or platform.system()).lower()
    if system.startswith("win") or system.startswith("cygwin"):
        return WINDOWS
    if system == "darwin":
        return MAC
    if system == "linux":
        return LINUX
    return None


def _java_prefix(otp_jar, memory_gb) -> List[str]:
    # fractions of a GB are not accepted by -Xmx<n>G
    memory = int(math.floor(memory_gb))
    if memory < 1:
        raise ValueError("memory_gb must be at least 1")
    return ["java", f"-Xmx{memory}G", "-jar", str(otp_jar)]


def graphs_dir(data_dir) -> Path:
    return Path(data_dir) / "graphs"


def router_dir(data_dir, router: str) -> Path:
    return graphs_dir(data_dir) / router


def build_graph_command(otp_jar, data_dir, memory_gb: float = 2,
                        router: str = "default", analyst: bool = False) -> List[str]:
    """
    java -Xmx2G -jar otp.jar --build <dir>/graphs/<router> [--analyst]
    """
    command = _java_prefix(otp_jar, memory_gb)
    command += ["--build", str(router_dir(data_dir, router))]
    if analyst:
        command.append("--analyst")
    return command


def server_command(otp_jar, data_dir, memory_gb: float = 2, router: str = "default",
                   port: int = 8080, secure_port: int = 8081,
                   analyst: bool = False) -> List[str]:
    """
    java -Xmx2G -jar otp.jar --router <router> --graphs <dir>/graphs
         --server --port 8080 --securePort 8081 [--analyst]
    """
    command = _java_prefix(otp_jar, memory_gb)
    command += [
        "--router", router,
        "--graphs", str(graphs_dir(data_dir)),
        "--server",
        "--port", str(port),
        "--securePort", str(secure_port),
    ]
    if analyst:
        command.append("--analyst")
    return command


def list_java_command(os_name: Optional[str] = None) -> List[str]:
    os_name = os_name or current_os()
    if os_name in (LINUX, MAC):
        return ["ps", "-A"]
    if os_name == WINDOWS:
        return ["tasklist", "/FI", "IMAGENAME eq java.exe"]
    raise UnsupportedPlatformError(f"Unsupported platform: {platform.system()}")


def kill_java_command(os_name: Optional[str] = None) -> List[str]:
    os_name = os_name or current_os()
    if os_name in (LINUX, MAC):
        return ["pkill", "-9", "java"]
    if os_name == WINDOWS:
        return ["Taskkill", "/IM", "java.exe", "/F"]
    raise UnsupportedPlatformError(f"Unsupported platform: {platform.system()}")


def format_command(command: List[str]) -> str:
    return shlex.join(command)
