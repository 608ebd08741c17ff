import tempfile
import unittest
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import httpx
import openai

from tt_cli.ai.assistants import ask
from tt_cli.ai.assistants.ask import CommandSuggestion
from tt_cli.ai.llm import LLMClient as RealLLMClient, LLMCompletionResponse
from tt_cli.config import ConfigStore, OPENAI_API_KEY, OPENAI_MODEL
from tt_cli.errors import CredentialMissing, MalformedModelReply, NetworkFailure


def _reply(content):
    return LLMCompletionResponse(assistant_message={"role": "assistant", "content": content})


class TestParseCommandSuggestion(unittest.TestCase):
    """Tests for turning the model's text into a CommandSuggestion."""

    def test_valid_reply(self):
        result = ask.parse_command_suggestion('{"description": "Lists files", "command": "ls -la"}')
        self.assertEqual(result, CommandSuggestion(description="Lists files", command="ls -la"))

    def test_invalid_json_includes_raw_text(self):
        raw = "Sure! Here is your command: ls -la"
        with self.assertRaises(MalformedModelReply) as cm:
            ask.parse_command_suggestion(raw)

        self.assertIn(raw, str(cm.exception))
        self.assertIn("invalid JSON", str(cm.exception))
        self.assertEqual(cm.exception.raw, raw)

    def test_missing_field(self):
        with self.assertRaises(MalformedModelReply) as cm:
            ask.parse_command_suggestion('{"command": "ls -la"}')
        self.assertIn("description", str(cm.exception))

    def test_non_string_field(self):
        with self.assertRaises(MalformedModelReply):
            ask.parse_command_suggestion('{"description": "Lists files", "command": ["ls"]}')

    def test_non_object(self):
        with self.assertRaises(MalformedModelReply):
            ask.parse_command_suggestion('"ls -la"')


class TestAskAssistant(unittest.TestCase):
    """Tests for the `ask` flow: config, request, parsing, presentation and menu."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = ConfigStore(Path(self._tmp.name) / "config.json")
        self.store.set(OPENAI_API_KEY, "sk-test")

        # Patching LLMClient replaces its static helpers too; put the real ones
        # back so the messages sent to the mock are plain dictionaries.
        patcher = patch("tt_cli.ai.assistants.ask.LLMClient", autospec=True)
        self.MockLLMClient = patcher.start()
        self.addCleanup(patcher.stop)
        self.MockLLMClient.openai_configs = RealLLMClient.openai_configs
        self.MockLLMClient.format_system_message = RealLLMClient.format_system_message
        self.MockLLMClient.format_user_message = RealLLMClient.format_user_message
        self.mock_llm = self.MockLLMClient.return_value

        for target, value in (
            ("tt_cli.ai.assistants.ask.get_os_info", ("Ubuntu", "22.04")),
            ("tt_cli.ai.assistants.ask.get_shell_info", "zsh"),
        ):
            patcher = patch(target, return_value=value)
            patcher.start()
            self.addCleanup(patcher.stop)

    @patch("builtins.input", return_value="2")
    @patch("sys.stdout", new_callable=StringIO)
    def test_success_prints_suggestion_and_menu(self, mock_stdout, mock_input):
        self.mock_llm.completion.return_value = _reply(
            '{"description":"Lists files","command":"ls -la"}'
        )

        choice = ask.ask("list all files", self.store)

        self.assertEqual(choice, "Exit")
        lines = mock_stdout.getvalue().splitlines()
        description_line = next(line for line in lines if "Description:" in line)
        command_line = next(line for line in lines if "Command:" in line)
        self.assertIn("Lists files", description_line)
        self.assertIn("ls -la", command_line)

        menu = [line for line in lines if line.startswith(("1.", "2.", "3."))]
        self.assertEqual(menu, ["1. Execute command", "2. Exit"])
        mock_input.assert_called_once()

    @patch("builtins.input", return_value="2")
    @patch("sys.stdout", new_callable=StringIO)
    def test_request_contents(self, mock_stdout, mock_input):
        self.mock_llm.completion.return_value = _reply(
            '{"description":"Lists files","command":"ls -la"}'
        )

        ask.ask("list all files", self.store)

        self.MockLLMClient.assert_called_once_with(
            {"openai": {"api_key": "sk-test", "timeout": 30.0, "max_retries": 0}}
        )
        call_args = self.mock_llm.completion.call_args
        self.assertEqual(call_args.kwargs["model"], "openai:gpt-4o-mini")
        self.assertEqual(call_args.kwargs["response_format"], {"type": "json_object"})

        system_message, user_message = call_args.kwargs["messages"]
        self.assertEqual(system_message["role"], "system")
        self.assertIn("Ubuntu", system_message["content"])
        self.assertIn("22.04", system_message["content"])
        self.assertIn("zsh", system_message["content"])
        self.assertIn('"description"', system_message["content"])
        self.assertIn('"command"', system_message["content"])
        self.assertEqual(user_message, {"role": "user", "content": "list all files"})

    @patch("builtins.input", return_value="2")
    @patch("sys.stdout", new_callable=StringIO)
    def test_configured_model_overrides_default(self, mock_stdout, mock_input):
        self.store.set(OPENAI_MODEL, "gpt-4o")
        self.mock_llm.completion.return_value = _reply('{"description":"d","command":"c"}')

        ask.ask("anything", self.store)

        self.assertEqual(self.mock_llm.completion.call_args.kwargs["model"], "openai:gpt-4o")

    def test_missing_credential_fails_before_any_request(self):
        store = ConfigStore(Path(self._tmp.name) / "empty" / "config.json")

        with self.assertRaises(CredentialMissing):
            ask.ask("list all files", store)

        self.MockLLMClient.assert_not_called()

    @patch("builtins.input")
    def test_malformed_reply_includes_raw_text(self, mock_input):
        self.mock_llm.completion.return_value = _reply("I think you want `ls -la`.")

        with self.assertRaises(MalformedModelReply) as cm:
            ask.ask("list all files", self.store)

        self.assertIn("I think you want `ls -la`.", str(cm.exception))
        mock_input.assert_not_called()

    def test_empty_reply_uses_placeholder(self):
        self.mock_llm.completion.return_value = LLMCompletionResponse(assistant_message={})

        with self.assertRaises(MalformedModelReply) as cm:
            ask.ask("list all files", self.store)

        self.assertEqual(cm.exception.raw, "No response received")

    @patch("subprocess.run")
    @patch("os.system")
    @patch("builtins.input", return_value="1")
    @patch("sys.stdout", new_callable=StringIO)
    def test_execute_choice_does_not_run_anything(self, mock_stdout, mock_input, mock_os_system, mock_run):
        self.mock_llm.completion.return_value = _reply(
            '{"description":"Lists files","command":"ls -la"}'
        )

        choice = ask.ask("list all files", self.store)

        self.assertEqual(choice, "Execute command")
        self.assertIn("not implemented", mock_stdout.getvalue())
        mock_os_system.assert_not_called()
        mock_run.assert_not_called()

    @patch("builtins.input", side_effect=["3", "yes", "2"])
    @patch("sys.stdout", new_callable=StringIO)
    def test_invalid_choice_asks_again(self, mock_stdout, mock_input):
        self.mock_llm.completion.return_value = _reply('{"description":"d","command":"c"}')

        choice = ask.ask("anything", self.store)

        self.assertEqual(choice, "Exit")
        self.assertEqual(mock_input.call_count, 3)

    @patch("builtins.input", side_effect=KeyboardInterrupt)
    @patch("sys.stdout", new_callable=StringIO)
    def test_interrupted_menu_exits_quietly(self, mock_stdout, mock_input):
        self.mock_llm.completion.return_value = _reply('{"description":"d","command":"c"}')

        self.assertIsNone(ask.ask("anything", self.store))



@patch("tt_cli.ai.assistants.ask.get_shell_info", return_value="zsh")
@patch("tt_cli.ai.assistants.ask.get_os_info", return_value=("Ubuntu", "22.04"))
class TestAskRequestFailures(unittest.TestCase):
    """Tests for `ask` when the provider call itself fails, through the real LLM client."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = ConfigStore(Path(self._tmp.name) / "config.json")
        self.store.set(OPENAI_API_KEY, "sk-test")

    @patch("tt_cli.ai.assistants.ask.parse_command_suggestion")
    @patch("openai.resources.chat.completions.Completions.create")
    def test_error_status_fails_without_parsing(self, mock_create, mock_parse, *mocks):
        response = httpx.Response(
            500,
            text="upstream exploded",
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"),
        )
        mock_create.side_effect = openai.InternalServerError(
            "Error code: 500", response=response, body=None
        )

        with self.assertRaises(NetworkFailure) as cm:
            ask.ask("list all files", self.store)

        self.assertEqual(cm.exception.status_code, 500)
        self.assertIn("upstream exploded", str(cm.exception))
        mock_parse.assert_not_called()

    @patch("tt_cli.ai.assistants.ask.parse_command_suggestion")
    @patch("openai.resources.chat.completions.Completions.create")
    def test_timeout_fails_without_parsing(self, mock_create, mock_parse, *mocks):
        mock_create.side_effect = openai.APITimeoutError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        )

        with self.assertRaises(NetworkFailure):
            ask.ask("list all files", self.store)

        mock_parse.assert_not_called()


if __name__ == "__main__":
    unittest.main()
