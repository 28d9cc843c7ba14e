"""
Command line for driving a local OTP.

    otp check       --otp otp.jar --dir /data/otp
    otp build-graph --otp otp.jar --dir /data/otp --memory 4
    otp setup       --otp otp.jar --dir /data/otp --no-browser
    otp plan        --from 50.72,-3.53 --to 50.73,-3.50 --mode TRANSIT,WALK
    otp stop        --yes

Defaults for --otp, --dir, --router, --memory, --port come from OTP_* environment
variables (a .env file is read too).
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from typing import List, Optional

from . import server
from .client import OTPClient
from .config import connection_from_env, settings_from_env
from .connection import OTPConnection
from .errors import OTPError
from .results import itineraries_to_frame

logger = logging.getLogger("otp")


def parse_place(value: str):
    try:
        lat, lon = (float(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}")
    return lat, lon


def parse_date_time(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an ISO date/time, got {value!r}")


def _add_server_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--otp", dest="otp_jar", metavar="JAR", help="path to the OTP .jar file")
    p.add_argument("--dir", dest="data_dir", metavar="DIR",
                   help="directory containing graphs/<router>")
    p.add_argument("--router", help="router name (default: default)")
    p.add_argument("--memory", dest="memory_gb", type=int, metavar="GB",
                   help="Java heap size in GB (default: 2)")
    p.add_argument("--analyst", action="store_true", default=None,
                   help="enable the OTP analyst features")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="otp",
        description="Build graphs for, run, stop and query a local OpenTripPlanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="check files and Java before running OTP")
    _add_server_args(check)
    check.add_argument("--graph", action="store_true", help="also require Graph.obj")

    build = sub.add_parser("build-graph", help="build Graph.obj for a router")
    _add_server_args(build)

    run = sub.add_parser("setup", help="start an OTP server in the background")
    _add_server_args(run)
    run.add_argument("--port", type=int)
    run.add_argument("--secure-port", dest="secure_port", type=int)
    run.add_argument("--no-wait", dest="wait", action="store_false",
                     help="return straight away instead of waiting for OTP to load")
    run.add_argument("--no-browser", dest="open_browser", action="store_false",
                     help="don't open the OTP web page once it is ready")

    stop = sub.add_parser("stop", help="force-stop all Java processes")
    stop.add_argument("--yes", dest="warn", action="store_false",
                      help="don't ask for confirmation")
    stop.add_argument("--ask", dest="kill_all", action="store_false",
                      help="list Java processes and ask before killing them")

    plan = sub.add_parser("plan", help="plan a trip on a running OTP")
    plan.add_argument("--from", dest="from_place", type=parse_place, required=True, metavar="LAT,LON")
    plan.add_argument("--to", dest="to_place", type=parse_place, required=True, metavar="LAT,LON")
    plan.add_argument("--mode", default="CAR", help="comma separated modes (default: CAR)")
    plan.add_argument("--date-time", dest="date_time", type=parse_date_time,
                      help="ISO date/time of departure (default: now)")
    plan.add_argument("--arrive-by", dest="arrive_by", action="store_true")
    plan.add_argument("--itineraries", dest="num_itineraries", type=int, default=3)
    plan.add_argument("--hostname", default=None)
    plan.add_argument("--port", type=int)
    plan.add_argument("--router")
    plan.add_argument("--url", help="full OTP router url, overrides hostname/port/router")
    plan.add_argument("--ssl", action="store_true")
    plan.add_argument("--out", metavar="CSV", help="write the legs to a CSV file")

    return p.parse_args(argv)


def _settings(args: argparse.Namespace):
    keys = ("otp_jar", "data_dir", "router", "memory_gb", "analyst", "hostname",
            "port", "secure_port")
    return settings_from_env(**{k: getattr(args, k, None) for k in keys})


def run_check(args) -> int:
    settings = _settings(args)
    server.check_setup(settings.otp_jar, settings.data_dir, settings.router, graph=args.graph)
    logger.info("Basic checks completed")
    return 0


def run_build_graph(args) -> int:
    settings = _settings(args)
    server.build_graph(
        settings.otp_jar,
        settings.data_dir,
        memory_gb=settings.memory_gb,
        router=settings.router,
        analyst=settings.analyst,
    )
    return 0


def run_setup(args) -> int:
    settings = _settings(args)
    handle = server.setup(
        settings.otp_jar,
        settings.data_dir,
        memory_gb=settings.memory_gb,
        router=settings.router,
        port=settings.port,
        secure_port=settings.secure_port,
        analyst=settings.analyst,
        wait=args.wait,
        open_browser=args.open_browser,
        startup_wait_s=settings.startup_wait_s,
        poll_interval_s=settings.poll_interval_s,
        poll_attempts=settings.poll_attempts,
    )
    logger.info("OTP running with pid %s, log at %s", handle.pid, handle.log_path)
    return 0


def run_stop(args) -> int:
    server.stop(warn=args.warn, kill_all=args.kill_all)
    return 0


def run_plan(args) -> int:
    values = connection_from_env(hostname=args.hostname, router=args.router, port=args.port)
    connection = OTPConnection(ssl=args.ssl, url=args.url, **values)
    client = OTPClient(connection)
    response = client.plan(
        args.from_place,
        args.to_place,
        mode=args.mode,
        date_time=args.date_time,
        arrive_by=args.arrive_by,
        num_itineraries=args.num_itineraries,
    )
    frame = itineraries_to_frame(response, get_geometry=args.out is not None)

    if args.out:
        frame.to_csv(args.out, index=False)
        logger.info("%s legs written to %s", len(frame), args.out)
    else:
        print(frame.to_string(index=False))
    return 0


COMMANDS = {
    "check": run_check,
    "build-graph": run_build_graph,
    "setup": run_setup,
    "stop": run_stop,
    "plan": run_plan,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return COMMANDS[args.command](args)
    except OTPError as e:
        logger.error("%s", e)
        return 1
    except ValueError as e:
        logger.error("Invalid argument: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
