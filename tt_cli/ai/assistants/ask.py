import json
import logging
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from ...config import OPENAI_API_KEY, OPENAI_MODEL, ConfigStore
from ...errors import CredentialMissing, MalformedModelReply
from ...system_info import get_os_info, get_shell_info
from ..llm import LLMClient

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
NO_RESPONSE = "No response received"

EXECUTE_OPTION = "Execute command"
EXIT_OPTION = "Exit"
MENU_OPTIONS = (EXECUTE_OPTION, EXIT_OPTION)

SYSTEM_PROMPT = """
You are a terminal command expert helping a user on {os_name} {os_version}, using the {shell} shell.
Given a natural language request, produce a single shell command for that environment which
accomplishes it.

Your response must be a valid JSON object with exactly these two string fields and nothing else:
{{
    "description": "<a short, human-readable explanation of what the command does>",
    "command": "<the literal shell command>"
}}

Do not include markdown, code blocks, or comments. Only output the JSON.
"""


@dataclass
class CommandSuggestion:
    """A shell command proposed by the AI together with its explanation."""

    description: str
    command: str


def build_system_prompt(os_name: str, os_version: str, shell: str) -> str:
    return SYSTEM_PROMPT.format(os_name=os_name, os_version=os_version, shell=shell)


def parse_command_suggestion(raw: str) -> CommandSuggestion:
    """Parses the model's message content into a CommandSuggestion."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedModelReply(f"invalid JSON: {e}", raw) from e

    if not isinstance(data, dict):
        raise MalformedModelReply("expected a JSON object", raw)

    for field in ("description", "command"):
        if not isinstance(data.get(field), str):
            raise MalformedModelReply(f"missing or non-string field '{field}'", raw)

    return CommandSuggestion(description=data["description"], command=data["command"])


def _suggest_shell_command(store: ConfigStore, query: str) -> CommandSuggestion:
    api_key = store.get(OPENAI_API_KEY)
    if api_key is None:
        raise CredentialMissing(OPENAI_API_KEY)
    model = store.get(OPENAI_MODEL) or DEFAULT_MODEL

    os_name, os_version = get_os_info()
    shell = get_shell_info()
    logger.debug("Host context: os=%s %s, shell=%s", os_name, os_version, shell)

    llm = LLMClient(LLMClient.openai_configs(api_key))
    messages = [
        LLMClient.format_system_message(build_system_prompt(os_name, os_version, shell)),
        LLMClient.format_user_message(query),
    ]
    response = llm.completion(
        model=f"openai:{model}",
        messages=messages,
        response_format={"type": "json_object"},
    )

    return parse_command_suggestion(response.content or NO_RESPONSE)


def _choose_action(console: Console) -> Optional[str]:
    console.print()
    for number, option in enumerate(MENU_OPTIONS, 1):
        console.print(f"[bold]{number}.[/] {option}")

    choices = [str(number) for number in range(1, len(MENU_OPTIONS) + 1)]
    try:
        choice = Prompt.ask("What do you want to do?", choices=choices, console=console)
    except (KeyboardInterrupt, EOFError):
        return None
    return MENU_OPTIONS[int(choice) - 1]


def ask(query: str, store: Optional[ConfigStore] = None) -> Optional[str]:
    """
    Asks the AI for a shell command matching `query`, shows it and lets the user
    pick what to do with it. Returns the chosen menu option (None if the prompt
    was interrupted).
    """
    suggestion = _suggest_shell_command(store or ConfigStore(), query)

    console = Console()
    console.print(f"[bold green]Description:[/] {escape(suggestion.description)}")
    console.print(f"[bold cyan]Command:[/] {escape(suggestion.command)}")

    choice = _choose_action(console)
    if choice == EXECUTE_OPTION:
        # Running the command is not implemented yet; the user has to copy it.
        console.print("[yellow]Command execution is not implemented yet.[/] Run it yourself:")
        console.print(escape(suggestion.command), highlight=False)
    return choice
