from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich_argparse import RawTextRichHelpFormatter
from safe_js_runner import (
    RunnerPolicy,
    ScriptExecutor,
    ValidationRejected,
    configure_logging,
    extract_variable_names,
    validate_script,
)

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m sjr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for running and inspecting widget scripts.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m sjr",
        description=(
            "safe-js-runner CLI\n"
            "Run widget scripts in a fresh isolated QuickJS realm.\n"
            "Scripts see their data as `$` and nothing else from the host."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m sjr run price.js --data quote.json\n"
            "  python -m sjr run card.js --data quote.json --mode template\n"
            "  echo '{\"price\": 3.5}' | python -m sjr run price.js --data -\n"
            "  python -m sjr check price.js\n"
            "  python -m sjr vars card.js"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log each execution stage at DEBUG level.",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Execute a script against JSON data.",
        description=(
            "Execute one script and print its result.\n"
            "Exit code is 0 on success and 1 when the script fails."
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("script", help="Path to the script file.")
    run_cmd.add_argument(
        "--data",
        help="Path to a JSON file bound to `$`, or `-` to read stdin (default: null).",
    )
    run_cmd.add_argument(
        "--mode",
        choices=["value", "template"],
        default="value",
        help="`value` returns one result, `template` returns declared variables (default: value).",
    )
    run_cmd.add_argument(
        "--policy",
        help="Path to a policy TOML file.",
    )
    run_cmd.add_argument(
        "--timeout-ms",
        type=int,
        help="Override the policy execution budget in milliseconds.",
    )

    check_cmd = sub.add_parser(
        "check",
        help="Screen a script without running it.",
        description="Apply the size limit and keyword denylist only.",
        formatter_class=_HELP_FORMATTER,
    )
    check_cmd.add_argument("script", help="Path to the script file.")
    check_cmd.add_argument("--policy", help="Path to a policy TOML file.")

    vars_cmd = sub.add_parser(
        "vars",
        help="List variable names template mode would collect.",
        description="Show names declared with var/let/const, excluding reserved `__` names.",
        formatter_class=_HELP_FORMATTER,
    )
    vars_cmd.add_argument("script", help="Path to the script file.")

    return parser


def _load_policy(path: str | None, timeout_ms: int | None = None) -> RunnerPolicy:
    """Load the policy file (or defaults) and apply CLI overrides.

    Example:
        ```python
        policy = _load_policy(None, timeout_ms=250)
        ```
    """
    policy = RunnerPolicy.from_file(path) if path else RunnerPolicy()
    if timeout_ms is None:
        return policy
    return replace(policy, timeout_ms=timeout_ms)


def _load_data(source: str | None) -> Any:
    """Read the JSON data blob from a file path or stdin.

    Example:
        ```python
        data = _load_data("/tmp/quote.json")
        ```
    """
    if source is None:
        return None
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return json.loads(raw) if raw.strip() else None


def _print_variables(names: Sequence[str]) -> None:
    """Render extracted variable names in a rich table.

    Example:
        ```python
        _print_variables(["total", "label"])
        ```
    """
    table = Table(title="Template Variables")
    table.add_column("#", style="cyan")
    table.add_column("Name", style="magenta")
    for index, name in enumerate(names, start=1):
        table.add_row(str(index), name)
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `sjr` CLI command handler.

    Example:
        ```python
        code = main(["run", "price.js", "--data", "quote.json"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        code = Path(args.script).read_text(encoding="utf-8")
    except OSError as exc:
        _CONSOLE.print(Panel.fit(f"Cannot read script: {exc}", style="bold red"))
        return 2

    if args.command == "vars":
        names = extract_variable_names(code)
        if not names:
            _CONSOLE.print(Panel.fit("No declared variables found.", style="bold yellow"))
            return 0
        _print_variables(names)
        return 0

    try:
        policy = _load_policy(args.policy, getattr(args, "timeout_ms", None))
    except ValueError as exc:
        _CONSOLE.print(Panel.fit(f"Invalid policy: {exc}", style="bold red"))
        return 2

    if args.command == "check":
        try:
            validate_script(code, policy)
        except ValidationRejected as exc:
            _CONSOLE.print(Panel.fit(exc.message, title="Rejected", border_style="red"))
            return 1
        _CONSOLE.print(Panel.fit("Script passed validation.", style="bold green"))
        return 0

    if args.command == "run":
        try:
            data = _load_data(args.data)
        except (OSError, json.JSONDecodeError) as exc:
            _CONSOLE.print(Panel.fit(f"Cannot load data: {exc}", style="bold red"))
            return 2
        result = ScriptExecutor(policy).execute(code, data, args.mode)
        if result.success:
            _CONSOLE.print(Panel.fit(Pretty(result.to_dict()), title="Result", border_style="green"))
            return 0
        _CONSOLE.print(Panel.fit(Pretty(result.to_dict()), title="Failed", border_style="red"))
        return 1

    parser.error("Unhandled command")
    return 2
