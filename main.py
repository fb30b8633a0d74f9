# main.py - Console entry point for the tree editor
from dotenv import load_dotenv

load_dotenv()  # before config is imported, so .env overrides apply

import argparse
import asyncio
import logging
import sys

from rich.console import Console

from tree_editor import config
from tree_editor.fsm.fsm_machine import MachineSnapshot, TreeMachine
from tree_editor.logger_factory import setup_logging
from tree_editor.operations import SimulatedBackend
from tree_editor.trace_context import new_session_id, set_session_id
from tree_editor.ui.commands import HELP, CommandError, parse_command
from tree_editor.ui.console_ui import show, show_funds

logger = logging.getLogger("tree_editor.main")
console = Console()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive asset tree editor")
    parser.add_argument("--empty", action="store_true", default=config.EMPTY_ASSETS,
                        help="start with an empty asset list")
    parser.add_argument("--failure-rate", type=float, default=config.SIMULATED_FAILURE_RATE,
                        help="probability that a simulated backend call fails")
    parser.add_argument("--latency", type=float, default=config.OPERATION_LATENCY_MAX_S,
                        help="maximum simulated latency in seconds")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    parser.add_argument("--log-file", default=config.LOG_FILE,
                        help="write JSONL logs to this file")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    backend = SimulatedBackend(
        latency_max_s=args.latency,
        failure_rate=args.failure_rate,
        empty=args.empty,
    )
    machine = TreeMachine(backend)

    last_rendered = [None]

    def on_snapshot(snapshot: MachineSnapshot) -> None:
        key = (snapshot.state.path, snapshot.context)
        if key != last_rendered[0]:
            last_rendered[0] = key
            show(snapshot, console)

    machine.subscribe(on_snapshot)
    machine.start()
    console.print("Type `help` for commands.", style="dim")

    loop = asyncio.get_running_loop()
    try:
        while True:
            try:
                line = await loop.run_in_executor(None, input, "> ")
            except EOFError:
                break
            if not line.strip():
                continue

            try:
                command = parse_command(line, config.FUNDS)
            except CommandError as e:
                console.print(str(e), style="red")
                continue

            if command == "quit":
                break
            if command == "help":
                console.print(HELP)
            elif command == "funds":
                show_funds(config.FUNDS, machine.context.selected_fund_id, console)
            elif command == "stats":
                console.print(machine.get_stats())
            elif command == "wait":
                await machine.wait_until_settled()
            else:
                ignored_before = machine.get_stats()["ignored_events"]
                snapshot = machine.send(command)
                if machine.get_stats()["ignored_events"] > ignored_before:
                    console.print(f"{command.type.value} not possible in {snapshot.path}", style="yellow")
    finally:
        machine.stop()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    session_id = new_session_id()
    set_session_id(session_id)
    logger.info(f"Tree editor session {session_id} (backend latency<={args.latency}s, failure_rate={args.failure_rate})")

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
