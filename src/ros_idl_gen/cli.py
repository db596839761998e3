"""Command line entry point for ros-idl-gen using Cyclopts."""

import logging
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import App, Group, Parameter
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ros_idl_gen.codegen import Layout, camel_to_snake
from ros_idl_gen.compiler import DEFAULT_EXCLUDED_PACKAGES, CompileConfig, compile_packages
from ros_idl_gen.dialects import parse_interface_file
from ros_idl_gen.exceptions import CompileError, IdlError
from ros_idl_gen.models import Action, Message, Service

logger = logging.getLogger(__name__)

console = Console()
console_err = Console(stderr=True)

DISCOVERY_GROUP = Group("Discovery")
OUTPUT_GROUP = Group("Output")

app = App(
    name="ros-idl-gen",
    help="Generate Python dataclasses from ROS msg, srv and action definitions.",
    help_format="rich",
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console_err, rich_tracebacks=True, tracebacks_show_locals=verbose)],
        force=True,
    )


def _report_error(error: IdlError) -> None:
    errors = error.errors if isinstance(error, CompileError) else [error]
    for item in errors:
        console_err.print(f"[red]Error: {escape(str(item))}[/red]")


def generate(
    prefixes: list[Path] | None = None,
    *,
    out: Annotated[Path, Parameter(name=["-o", "--out"], group=OUTPUT_GROUP)],
    layout: Annotated[Layout, Parameter(group=OUTPUT_GROUP)] = Layout.PACKAGE,
    single_file: Annotated[bool, Parameter(group=OUTPUT_GROUP)] = False,
    exclude: Annotated[list[str] | None, Parameter(name=["--exclude"], group=DISCOVERY_GROUP)] = None,
    search_env: Annotated[bool, Parameter(group=DISCOVERY_GROUP)] = True,
    jobs: Annotated[int | None, Parameter(name=["-j", "--jobs"])] = None,
    collect_errors: bool = False,
    verbose: Annotated[bool, Parameter(name=["-v", "--verbose"])] = False,
) -> None:
    """Discover interface packages and generate Python modules for them.

    Parameters
    ----------
    prefixes
        Install prefixes to search in addition to AMENT_PREFIX_PATH.
    out
        Output directory of the generated modules.
    layout
        Module layout: one module per namespace, one per declaration, or a single module.
    single_file
        Shorthand for ``--layout single``.
    exclude
        Package names to skip (libstatistics_collector is always skipped).
    search_env
        Search the prefixes listed in AMENT_PREFIX_PATH.
    jobs
        Number of parser threads.
    collect_errors
        Report every file that fails to parse instead of stopping at the first one.
    verbose
        Enable debug logging.
    """
    _configure_logging(verbose)

    config = CompileConfig(
        prefixes=list(prefixes or []),
        search_env=search_env,
        exclude_packages=set(DEFAULT_EXCLUDED_PACKAGES) | set(exclude or []),
        output_dir=out,
        layout=Layout.SINGLE if single_file else layout,
        max_workers=jobs,
        fail_fast=not collect_errors,
    )

    try:
        output = compile_packages(config)
    except IdlError as e:
        _report_error(e)
        sys.exit(1)

    logger.debug(f"Compiled packages: {', '.join(output.package_names)}")
    if not output.packages:
        console.print("[yellow]No interface packages found[/yellow]")
        return

    table = Table(title=f"Generated {len(output.generated_files)} files in {out}")
    table.add_column("Package", style="bold white")
    table.add_column("Messages", style="green", justify="right")
    table.add_column("Services", style="cyan", justify="right")
    table.add_column("Actions", style="yellow", justify="right")

    for package in output.packages:
        table.add_row(
            package.name,
            str(len(package.messages)),
            str(len(package.services)),
            str(len(package.actions)),
        )

    console.print(table)


def _message_table(message: Message, namespace: str) -> Table:
    title = f"{message.package}/{namespace}/{message.name}"
    table = Table(title=title, title_justify="left", min_width=len(title))
    table.add_column("Name", style="bold white")
    table.add_column("Type", style="cyan")
    table.add_column("Value", style="green")

    for constant in message.constants:
        table.add_row(constant.name, escape(str(constant.type)), escape(", ".join(constant.value)))
    for member in message.members:
        default = ", ".join(member.default) if member.default is not None else ""
        table.add_row(member.name, escape(str(member.type)), escape(default))
    return table


def show(
    file: Path,
    *,
    package: Annotated[str | None, Parameter(name=["-p", "--package"])] = None,
) -> None:
    """Parse one definition file and print its structure.

    Actions also show the derived SendGoal, GetResult and FeedbackMessage types.

    Parameters
    ----------
    file
        Path to a .msg, .srv or .action file.
    package
        Package name, defaults to the grandparent directory name (share/<package>/msg/Foo.msg).
    """
    package_name = package or file.resolve().parent.parent.name

    try:
        interface = parse_interface_file(package_name, file)
    except OSError as e:
        console_err.print(f"[red]Error: cannot read {escape(str(file))}: {escape(e.strerror or str(e))}[/red]")
        sys.exit(1)
    except IdlError as e:
        _report_error(e)
        sys.exit(1)

    if isinstance(interface, Action):
        namespace = "action"
        messages = [interface.goal, interface.result, interface.feedback]
        for service in (interface.send_goal_service(), interface.get_result_service()):
            messages.extend((service.request, service.response))
        messages.append(interface.feedback_message())
    elif isinstance(interface, Service):
        namespace = "srv"
        messages = [interface.request, interface.response]
    else:
        namespace = "msg"
        messages = [interface]

    for message in messages:
        console.print(_message_table(message, namespace))


def symbol(names: list[str]) -> None:
    """Print the snake case symbol stem of each PascalCase name.

    Parameters
    ----------
    names
        Declaration names such as ``Int32MultiArray``.
    """
    for name in names:
        console.print(camel_to_snake(name), highlight=False)


app.command(name="generate")(generate)
app.command(name="show")(show)
app.command(name="symbol")(symbol)


if __name__ == "__main__":
    app()
