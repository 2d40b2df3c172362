import json
import logging
import os
import shlex
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError as ParamsValidationError

from config import load_config
from database import create_db_and_tables, make_engine
from goals import (
    CapacityExceededError,
    DragController,
    GoalSnapshot,
    GoalStore,
    GoalStoreError,
    MutationResult,
    NotFoundError,
    OutOfRangeError,
    PersistenceError,
)
from models import Goal, GoalStatus
from storage import JsonStore, SqlStore, StorageInterface
from tools import ToolSet, build_toolset

logger = logging.getLogger(__name__)


# ANSI color codes for CLI output formatting
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"


def create_storage(config: Dict[str, Any]) -> StorageInterface[Goal]:
    """Build the storage backend named by the configuration"""
    if config["storage"] == "sql":
        engine = make_engine(config["database_url"])
        create_db_and_tables(engine)
        return SqlStore(engine)
    return JsonStore(Goal, config["json_path"])


def create_store(config: Optional[Dict[str, Any]] = None) -> Tuple[GoalStore, ToolSet]:
    """Create and load the goal store, and the toolset bound to it"""
    config = config or load_config()
    store = GoalStore(create_storage(config))
    try:
        result = store.load()
    except PersistenceError as e:
        print(f"{Colors.YELLOW}Warning: could not load saved goals ({e}). "
              f"Changes in this session may not be saved.{Colors.RESET}")
    else:
        if not result.ok:
            print(f"{Colors.YELLOW}Warning: {result.error}{Colors.RESET}")
    drag = DragController(store, item_height=config["card_height"])
    return store, build_toolset(store, drag)


def parse_value(raw: str) -> Any:
    """Decode a command argument as JSON, falling back to the raw string"""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_command(line: str) -> Tuple[str, Dict[str, Any]]:
    """Split 'tool_name key=value ...' into the tool name and its arguments"""
    tokens = shlex.split(line)
    if not tokens:
        raise ValueError("Empty command")

    name, arguments = tokens[0], {}
    for token in tokens[1:]:
        key, sep, value = token.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{token}'")
        arguments[key] = parse_value(value)
    return name, arguments


def execute_tool_call(toolset: ToolSet, name: str, arguments: Dict[str, Any]) -> Any:
    """Execute a tool by name"""
    tool = toolset.get_tool_by_name(name)
    if not tool:
        raise ValueError(f"Tool '{name}' not found (type 'help' for a list)")
    return tool.execute(**arguments)


def print_formatted_tool_call(name: str, arguments: Dict[str, Any]):
    """Print a formatted representation of a tool call with colors"""
    print(f"{Colors.BOLD}{Colors.CYAN}[TOOL CALL] {name}{Colors.RESET}")
    if not arguments:
        return
    print(f"{Colors.CYAN}Arguments: {Colors.RESET}")

    formatted_args = json.dumps(arguments, indent=2, default=str)
    formatted_args = "\n".join(f"  {Colors.CYAN}{line}{Colors.RESET}" for line in formatted_args.split("\n"))
    print(formatted_args)


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, MutationResult):
        return {
            "ok": result.ok,
            "changed": result.changed,
            "goal": result.goal.model_dump(mode="json") if result.goal else None,
            "error": str(result.error) if result.error else None,
        }
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json")
    if isinstance(result, list):
        return [_to_jsonable(item) for item in result]
    return result


def print_formatted_tool_result(name: str, result: Any):
    """Print a formatted representation of a tool result with colors"""
    if isinstance(result, MutationResult) and not result.ok:
        print(f"{Colors.YELLOW}Saved in this session only: {result.error}{Colors.RESET}")

    result_str = json.dumps(_to_jsonable(result), default=str, indent=2)
    print(f"{Colors.BOLD}{Colors.GREEN}[TOOL RESULT] {name}{Colors.RESET}")

    formatted_result = "\n".join(f"  {Colors.GREEN}{line}{Colors.RESET}" for line in result_str.split("\n"))
    print(formatted_result)


def print_help(toolset: ToolSet):
    print(f"{Colors.BOLD}Commands:{Colors.RESET} <tool> key=value ...   help   quit")
    for description in toolset.get_descriptions():
        params = " ".join(
            f"{name}=<{spec['type']}>" if name in description["required"] else f"[{name}=<{spec['type']}>]"
            for name, spec in description["parameters"].items()
        )
        print(f"  {Colors.CYAN}{description['name']}{Colors.RESET} {params}")
        print(f"      {description['description']}")


def print_summary(snapshot: GoalSnapshot, focus_cap: int):
    counts = snapshot.counts()
    print(
        f"{Colors.BLUE}Active {counts[GoalStatus.ACTIVE]}/{focus_cap} · "
        f"Backlog {counts[GoalStatus.BACKLOG]} · "
        f"Completed {counts[GoalStatus.COMPLETED]}{Colors.RESET}"
    )


def run_command(toolset: ToolSet, line: str) -> bool:
    """Run one command line. Returns False when the loop should stop."""
    command = line.strip()
    if not command:
        return True
    if command.lower() in ("quit", "exit"):
        return False
    if command.lower() == "help":
        print_help(toolset)
        return True

    try:
        name, arguments = parse_command(command)
        print_formatted_tool_call(name, arguments)
        result = execute_tool_call(toolset, name, arguments)
        print_formatted_tool_result(name, result)
    except CapacityExceededError as e:
        print(f"{Colors.YELLOW}{e}. Finish or move an active goal to the backlog first.{Colors.RESET}")
    except (NotFoundError, OutOfRangeError) as e:
        logger.warning("Command '%s' referenced stale state: %s", command, e)
        print(f"{Colors.YELLOW}That goal or position no longer exists. Run list_goals to refresh.{Colors.RESET}")
    except ParamsValidationError as e:
        print(f"{Colors.RED}Invalid arguments:{Colors.RESET}")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            print(f"  {Colors.RED}{location}: {error['msg']}{Colors.RESET}")
    except (GoalStoreError, ValueError) as e:
        print(f"{Colors.RED}Error: {e}{Colors.RESET}")
    return True


def command_loop(store: GoalStore, toolset: ToolSet):
    """Read commands from stdin until 'quit'"""
    print(f"{Colors.BOLD}Welcome to the Goal Focus tracker!{Colors.RESET}")
    print("Type 'help' for commands, 'quit' or 'exit' to end the session.")
    print()

    unsubscribe = store.subscribe(lambda snapshot: print_summary(snapshot, store.focus_cap))
    print_summary(store.snapshot(), store.focus_cap)
    try:
        while True:
            try:
                line = input(f"{Colors.BOLD}> {Colors.RESET}")
            except EOFError:
                break
            if not run_command(toolset, line):
                break
    finally:
        unsubscribe()


def check_color_support():
    """Check if the terminal supports colors and disable if necessary"""
    # Check for NO_COLOR environment variable (https://no-color.org/)
    if os.getenv("NO_COLOR") is not None:
        disable_colors()
        return

    # Check for Windows and enable VT100 if possible
    if os.name == "nt":
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
        except (AttributeError, OSError):
            disable_colors()


def disable_colors():
    for attr in dir(Colors):
        if not attr.startswith("__"):
            setattr(Colors, attr, "")
