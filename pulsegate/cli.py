"""CLI interface for PulseGate."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from pulsegate.core.abort import AbortSignal
from pulsegate.core.config import DEFAULT_CONFIG_PATH, Config, load_config
from pulsegate.core.logging import setup_logging
from pulsegate.gateway import HeartbeatGateway

logger = logging.getLogger(__name__)


def build_overrides(args: argparse.Namespace) -> dict[str, dict[str, str]]:
    """Collect heartbeat config overrides from CLI flags."""
    heartbeat: dict[str, str] = {}
    if getattr(args, "every", None):
        heartbeat["every"] = args.every
    if getattr(args, "target", None):
        heartbeat["target"] = args.target
    if getattr(args, "to", None):
        heartbeat["to"] = args.to
    return {"heartbeat": heartbeat} if heartbeat else {}


async def run_scheduler(config: Config) -> None:
    """Run the heartbeat scheduler until SIGINT/SIGTERM."""
    gateway = HeartbeatGateway(config)
    abort = AbortSignal()

    def signal_handler() -> None:
        abort.set()

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, signal_handler)
    loop.add_signal_handler(signal.SIGTERM, signal_handler)

    await gateway.start(abort_signal=abort)
    try:
        await abort.wait()
        logger.info("Shutdown signal received, stopping...")
    finally:
        await gateway.stop()


async def run_once(config: Config, reason: str) -> int:
    """Run a single heartbeat and report the result.

    Returns:
        Process exit code (1 when the run failed).
    """
    gateway = HeartbeatGateway(config)
    await gateway.start_channels()
    try:
        result = await gateway.run_once(reason=reason)
    finally:
        await gateway.stop()

    if result.status == "ran":
        print(f"heartbeat ran ({result.duration_ms}ms)")
    else:
        print(f"heartbeat {result.status}: {result.reason}")
    return 1 if result.status == "failed" else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PulseGate - proactive heartbeat delivery for agent gateways")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Environment file loaded before config expansion (default: .env)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the heartbeat scheduler until interrupted")
    once_parser = subparsers.add_parser("once", help="Run a single heartbeat now")
    once_parser.add_argument("--reason", type=str, default="manual", help="Reason recorded with the run")

    for sub in (run_parser, once_parser):
        sub.add_argument("--every", type=str, help="Override heartbeat interval (e.g. 30m)")
        sub.add_argument(
            "--target",
            type=str,
            choices=["last", "whatsapp", "telegram", "none"],
            help="Override heartbeat target",
        )
        sub.add_argument("--to", type=str, help="Override heartbeat recipient")

    return parser


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.error("a command is required (run, once)")

    if args.env_file.exists():
        load_dotenv(args.env_file, override=False)

    config = load_config(args.config, overrides=build_overrides(args))

    level = "DEBUG" if args.verbose else config.logging.level
    setup_logging(
        level=level,
        directory=config.logging.directory,
        max_size_mb=config.logging.max_size_mb,
        backup_count=config.logging.backup_count,
    )

    if args.command == "once":
        return await run_once(config, args.reason)

    await run_scheduler(config)
    return 0


def run() -> None:
    """Entry point for the ``pulsegate`` console script.

    Startup errors are reported as one line on stderr instead of a traceback.
    """
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        return
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Invalid YAML in config: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Startup failure", exc_info=True)
        print(f"Startup failed: {e} (re-run with -v for details)", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
