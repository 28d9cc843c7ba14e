"""
Purpose: Drive a local OTP (OpenTripPlanner 1.x) Java process.

What it does:
- check_setup(): the files and Java version OTP needs are in place
- build_graph(): run OTP in --build mode to create Graph.obj
- setup(): launch OTP as a background server and wait until it answers
- stop(): stop a server we launched, or every Java process on the machine

Expected directory layout:

    <data_dir>/graphs/<router>/osm.pbf             required for build
    <data_dir>/graphs/<router>/router-config.json  optional
    <data_dir>/graphs/<router>/*.zip               optional GTFS feeds
    <data_dir>/graphs/<router>/*.tif               optional terrain
    <data_dir>/graphs/<router>/Graph.obj           written by build, needed by setup

Rule: no HTTP parsing here, only process control and readiness polling.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import time
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from . import commands
from .config import GRAPH_FILENAME, SERVER_LOG_FILENAME
from .connection import OTPConnection
from .errors import (
    GraphBuildError,
    OTPConnectionError,
    OTPSetupError,
    UnsupportedPlatformError,
)
from .java import check_java_version

logger = logging.getLogger(__name__)

# OTP prints plenty of lines on a healthy build; a handful of lines with an
# ERROR in them means it gave up straight away
SHORT_OUTPUT_LINES = 10

# seconds to let the JVM start before looking for an immediate failure
LAUNCH_CHECK_S = 2


@dataclass
class ServerHandle:
    """
    A server started by setup(): the Java process, where to reach it
    and where its output goes.
    """
    process: subprocess.Popen
    connection: OTPConnection
    log_path: Path

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_running(self) -> bool:
        return self.process.poll() is None

    def stop(self, timeout: float = 10) -> Optional[int]:
        return terminate_process(self.process, timeout=timeout)


def check_setup(otp_jar, data_dir, router: str = "default", graph: bool = False) -> None:
    """
    Checks to run before building a graph or starting OTP.
    Raises OTPSetupError (or one of the Java errors) on the first problem.
    """
    if data_dir is None or not Path(data_dir).is_dir():
        raise OTPSetupError(f"Directory does not exist: {data_dir}")

    router_path = commands.router_dir(data_dir, router)
    if not router_path.is_dir():
        raise OTPSetupError(f"Router directory does not exist: {router_path}")

    if otp_jar is None or not Path(otp_jar).is_file():
        raise OTPSetupError(f"OTP jar file does not exist: {otp_jar}")
    if Path(otp_jar).suffix.lower() != ".jar":
        raise OTPSetupError(f"OTP file must have a .jar extension: {otp_jar}")

    check_java_version()

    if graph:
        graph_path = router_path / GRAPH_FILENAME
        if not graph_path.is_file():
            raise OTPSetupError(
                f"Graph file does not exist: {graph_path}, run build_graph() first"
            )


def _is_short_error(lines: List[str]) -> bool:
    has_error = any("error" in line.lower() for line in lines)
    return has_error and len(lines) < SHORT_OUTPUT_LINES


def build_graph(otp_jar, data_dir, memory_gb: float = 2, router: str = "default",
                analyst: bool = False) -> List[str]:
    """
    Build an OTP graph from the OSM (and optional GTFS/terrain) files in
    <data_dir>/graphs/<router>. OTP writes Graph.obj next to them.

    Returns the log lines OTP produced. Raises GraphBuildError if it failed.
    """
    check_setup(otp_jar, data_dir, router=router, graph=False)
    logger.info("Basic checks completed, building graph, this may take a few minutes")

    command = commands.build_graph_command(otp_jar, data_dir, memory_gb, router, analyst)
    logger.debug("Running %s", commands.format_command(command))

    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        raise GraphBuildError(f"Failed to run OTP: {e}") from e

    lines = result.stdout.splitlines()

    if _is_short_error(lines):
        logger.error("Failed to build graph with message:\n%s", "\n".join(lines))
        raise GraphBuildError("Failed to build graph", output=lines)

    if result.returncode != 0:
        logger.error("OTP exited with status %s while building the graph", result.returncode)
        raise GraphBuildError(
            f"OTP exited with status {result.returncode}", output=lines
        )

    logger.info("Graph built")
    return lines


def _read_head(path: Path, n: int = SHORT_OUTPUT_LINES) -> List[str]:
    try:
        with open(path, "r", errors="replace") as f:
            return [line.rstrip("\n") for _, line in zip(range(n), f)]
    except OSError:
        return []


def _detach_kwargs(os_name: str) -> dict:
    # keep OTP running when the python process exits or gets Ctrl-C
    if os_name == commands.WINDOWS:
        return {"creationflags": getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)}
    return {"start_new_session": True}


def wait_for_server(connection: OTPConnection, *, startup_wait_s: float = 30,
                    poll_interval_s: float = 30, poll_attempts: int = 10,
                    open_browser: bool = True) -> bool:
    """
    Poll the router until it answers, at most poll_attempts times.
    Returns True once OTP is ready, False if it never answered.
    """
    time.sleep(startup_wait_s)

    for attempt in range(1, poll_attempts + 1):
        try:
            connection.check()
        except OTPConnectionError as e:
            logger.debug("Attempt %s: %s", attempt, e)
        else:
            logger.info(
                "OTP is ready to use Go to localhost:%s in your browser to view the OTP",
                connection.port,
            )
            if open_browser:
                webbrowser.open(connection.root_url())
            return True

        if attempt < poll_attempts:
            time.sleep(poll_interval_s)

    logger.warning("OTP is taking an unusually long time to load, releasing control")
    return False


def setup(otp_jar, data_dir, memory_gb: float = 2, router: str = "default",
          port: int = 8080, secure_port: int = 8081, analyst: bool = False,
          wait: bool = True, open_browser: bool = True, *,
          startup_wait_s: float = 30, poll_interval_s: float = 30,
          poll_attempts: int = 10) -> ServerHandle:
    """
    Start a local OTP server for a router whose graph has been built.

    With wait=True this blocks until OTP answers on localhost:<port>
    (by default 30s, then up to 10 more checks 30s apart, about 5 minutes).
    If it is still loading after that, control is returned anyway and the
    server keeps loading in the background.

    OTP output goes to <data_dir>/otp.log.
    """
    check_setup(otp_jar, data_dir, router=router, graph=True)

    os_name = commands.current_os()
    if os_name is None:
        raise UnsupportedPlatformError("You're on an unknown OS, this function is not yet supported")

    command = commands.server_command(
        otp_jar, data_dir, memory_gb, router, port, secure_port, analyst
    )
    log_path = Path(data_dir) / SERVER_LOG_FILENAME
    logger.debug("Running %s > %s", commands.format_command(command), log_path)

    try:
        with open(log_path, "w") as log_file:
            process = subprocess.Popen(
                command,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                **_detach_kwargs(os_name),
            )
    except OSError as e:
        raise OTPSetupError(f"Failed to start OTP: {e}") from e

    time.sleep(LAUNCH_CHECK_S)
    head = _read_head(log_path)
    returncode = process.poll()
    if returncode is not None and returncode != 0:
        raise OTPSetupError(
            f"Failed to start OTP (exit status {returncode}) with message: {' '.join(head)}"
        )
    errors = [line for line in head if "error" in line.lower()]
    if errors:
        terminate_process(process)
        raise OTPSetupError(f"Failed to start OTP with message: {errors[0]}")

    connection = OTPConnection(hostname="localhost", router=router, port=port, ssl=False)
    handle = ServerHandle(process=process, connection=connection, log_path=log_path)
    logger.info("OTP is loading and may take a while to be useable")

    if wait:
        wait_for_server(
            connection,
            startup_wait_s=startup_wait_s,
            poll_interval_s=poll_interval_s,
            poll_attempts=poll_attempts,
            open_browser=open_browser,
        )
    return handle


def terminate_process(process: subprocess.Popen, timeout: float = 10) -> Optional[int]:
    """terminate, then kill if it is still around after timeout seconds"""
    if process.poll() is not None:
        return process.returncode

    process.terminate()
    try:
        return process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.warning("OTP (pid %s) did not exit, killing it", process.pid)
        process.kill()
        return process.wait(timeout=timeout)


def _interactive() -> bool:
    return sys.stdin is not None and sys.stdin.isatty()


def _ask_yes_no(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def _run_tool(command: List[str]) -> Optional[subprocess.CompletedProcess]:
    """run an OS process tool, None (with a warning) when it is not installed"""
    try:
        return subprocess.run(command, capture_output=True, text=True)
    except OSError as e:
        logger.warning("Could not run %s: %s", command[0], e)
        return None


def find_java_processes(os_name: Optional[str] = None) -> List[str]:
    """Lines of the process table that mention java."""
    result = _run_tool(commands.list_java_command(os_name))
    if result is None:
        return []
    return [line for line in result.stdout.splitlines() if "java" in line.lower()]


def stop(warn: bool = True, kill_all: bool = True,
         process: Union[ServerHandle, subprocess.Popen, None] = None) -> None:
    """
    Stop OTP.

    With process, only that server is stopped. Without it every Java process
    is force-killed (OTP is just "java" to the OS), so by default you are
    asked to confirm first when running interactively.
    """
    if process is not None:
        if isinstance(process, ServerHandle):
            process = process.process
        code = terminate_process(process)
        logger.info("OTP (pid %s) stopped with exit status %s", process.pid, code)
        return

    if warn and _interactive():
        input("This will force Java to close, Press [enter] to continue, [ctrl-c] to abort")

    os_name = commands.current_os()

    if os_name in (commands.LINUX, commands.MAC):
        found = find_java_processes(os_name)
        logger.info("The following Java instances have been found:\n%s", "\n".join(found))

        if not kill_all and _interactive():
            kill_all = _ask_yes_no("Kill all of them?")

        if kill_all:
            if _run_tool(commands.kill_java_command(os_name)) is not None:
                logger.info("Java instances stopped")
        else:
            logger.info(
                "Kill the instances manually, e.g. with:\nkill -9 PID\n"
                "where PID is the id of the Java instance"
            )
    elif os_name == commands.WINDOWS:
        if _run_tool(commands.kill_java_command(os_name)) is not None:
            logger.info("Java instances stopped")
    else:
        logger.warning("You're on an unknown OS, this function is not yet supported")
