"""
Console command parsing.

Turns a typed line into a machine Event, or into one of the console's
own commands (wait, funds, stats, help, quit).
"""

from typing import Sequence, Union

from tree_editor.fsm.fsm_events import Event, EventType

HELP = """\
select ID        select the asset with id ID
unselect         clear the asset selection
fund N|NAME      select fund number N (see `funds`) or by name
delete           delete the selected asset
add              add the selected fund
replace          replace the selected asset with the selected fund
import           open the import dialog
import-data      start importing (dialog open)
close            close the import dialog
wait             wait until all operations settled
funds            list funds
stats            machine statistics
help             this text
quit             exit"""

CONSOLE_COMMANDS = {"wait", "funds", "stats", "help", "quit"}

_SIMPLE_EVENTS = {
    "unselect": EventType.UNSELECT_ASSET,
    "delete": EventType.DELETE_ASSET,
    "add": EventType.ADD_ASSET,
    "replace": EventType.REPLACE_ASSET,
    "import": EventType.OPEN_IMPORT_DIALOG,
    "import-data": EventType.IMPORT_DATA,
    "close": EventType.CLOSE_IMPORT_DIALOG,
}

_ALIASES = {"exit": "quit", "q": "quit", "?": "help", "select-asset": "select"}


class CommandError(ValueError):
    pass


def resolve_fund(arg: str, funds: Sequence[str]) -> str:
    """Fund by 1-based number, exact name, or unique case-insensitive suffix ("aaa")."""
    if arg.isdigit():
        index = int(arg) - 1
        if not 0 <= index < len(funds):
            raise CommandError(f"No fund number {arg} (1-{len(funds)})")
        return funds[index]

    if arg in funds:
        return arg

    matches = [f for f in funds if f.lower().endswith(arg.lower())]
    if len(matches) == 1:
        return matches[0]
    raise CommandError(f"Unknown fund: {arg}")


def parse_command(line: str, funds: Sequence[str]) -> Union[Event, str]:
    """
    Parse one console line.

    Returns:
        An Event to send, or the name of a console command

    Raises:
        CommandError: On unknown commands or bad arguments
    """
    parts = line.strip().split(maxsplit=1)
    if not parts:
        raise CommandError("Empty command")

    name = _ALIASES.get(parts[0].lower(), parts[0].lower())
    arg = parts[1].strip() if len(parts) > 1 else ""

    if name in CONSOLE_COMMANDS:
        return name

    if name in _SIMPLE_EVENTS:
        return Event.of(_SIMPLE_EVENTS[name])

    if name == "select":
        if not arg:
            raise CommandError("Usage: select ID")
        return Event.select_asset(arg)

    if name == "fund":
        if not arg:
            raise CommandError("Usage: fund N|NAME")
        return Event.select_fund(resolve_fund(arg, funds))

    raise CommandError(f"Unknown command: {parts[0]} (try `help`)")
