#!/usr/bin/env python3

import argparse
import argcomplete
import logging
import sys

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import wraps
from typing import Callable, List, Optional

from . import __version__
from .ai import ask
from .config import OPENAI_API_KEY, OPENAI_MODEL, ConfigStore
from .status import show_status


logger = logging.getLogger(__name__)

_available_commands: List["Command"] = []


@dataclass
class Argument(ABC):
    def __init__(self, help: str, kwargs: Optional[dict] = None):
        self.help = help
        self.kwargs = kwargs if kwargs is not None else {}

    @abstractmethod
    def add_to_parser(self, parser: argparse.ArgumentParser):
        pass


class OptionalArg(Argument):
    def __init__(
        self,
        short_option: str,
        long_option: str,
        help: str,
        kwargs: Optional[dict] = None,
    ):
        super().__init__(help=help, kwargs=kwargs)
        self.short_option = short_option
        self.long_option = long_option

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(
            self.short_option, self.long_option, help=self.help, **self.kwargs
        )


class PositionalArg(Argument):
    def __init__(self, name: str, help: str, kwargs: Optional[dict] = None):
        super().__init__(help=help, kwargs=kwargs)
        self.name = name

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(self.name, help=self.help, **self.kwargs)


@dataclass
class Command:
    name: str
    func: Callable
    help: str
    description: str
    args: list[Argument]


def command(args: List[Argument]):
    def decorator(func):
        if not func.__name__.startswith("handle_"):
            raise ValueError("Command handler must start with 'handle_'.")

        if not func.__doc__:
            raise ValueError(
                f"Command handler '{func.__name__}' must have a docstring for its help text."
            )

        command_name = func.__name__.split("_")[1]

        @wraps(func)
        def wrapper(*args, **kwargs):
            logger.debug("Running command '%s'", command_name)
            return func(*args, **kwargs)

        # Use the first line of the docstring as the help text and
        # the full docstring for the detailed description.
        help_text = func.__doc__.strip().split("\n")[0]
        _available_commands.append(
            Command(command_name, wrapper, help_text, func.__doc__, args)
        )
        return wrapper

    return decorator


##############################################################################


@command(
    [
        PositionalArg(
            name="query",
            help="What you want to do, in plain words (e.g. 'list all files including hidden ones').",
        )
    ]
)
def handle_ask(args):
    """Ask the AI for a shell command that does what you describe.
    The suggested command is shown with an explanation, and you can pick what to do with it.
    """
    ask(args.query)


@command([])
def handle_status(args):
    """Show the current user, directory, OS, shell and configuration status."""
    show_status()


@command(
    [
        PositionalArg(
            name="provider",
            help="The AI provider to configure.",
            kwargs={"choices": ["openai"]},
        ),
        PositionalArg(
            name="api_key",
            help="The API key used to authenticate with the provider.",
        ),
        OptionalArg(
            short_option="-m",
            long_option="--model",
            help="The model to use for queries (defaults to gpt-4o-mini).",
        ),
    ]
)
def handle_config(args):
    """Store the credential (and optionally the model) for an AI provider."""
    store = ConfigStore()
    store.set(OPENAI_API_KEY, args.api_key)
    if args.model:
        store.set(OPENAI_MODEL, args.model)
    print(f"OpenAI configuration saved to {store.path}")


##############################################################################


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def run_cli(argv: Optional[List[str]] = None):
    """
    Parses command-line arguments and executes the corresponding command.

    This function is designed to be testable by allowing arguments to be passed
    directly.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used automatically by `parse_args`.
    """
    parser = argparse.ArgumentParser(
        prog="tt", description="AI-based terminal command helper."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print debug logs to stderr."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(
        dest="command", help="Sub-commands", required=True
    )

    # Sort commands alphabetically for consistent --help output.
    _available_commands.sort(key=lambda cmd: cmd.name)

    for command in _available_commands:
        subparser = subparsers.add_parser(
            command.name, help=command.help, description=command.description
        )
        for arg in command.args:
            arg.add_to_parser(subparser)
        subparser.set_defaults(func=command.func)

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    try:
        args.func(args)
    except Exception as e:
        logger.debug("Command '%s' failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    """The main entry point for the command-line interface, called by the `tt` script."""
    run_cli()


if __name__ == "__main__":
    main()
