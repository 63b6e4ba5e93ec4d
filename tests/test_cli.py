"""Tests for the k6ai-call CLI, settings and logging setup."""

import json
import logging
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from k6ai.cli import load_config, main
from k6ai.core.config import Settings
from k6ai.core.logging import JSONFormatter, setup_logging
from k6ai.gateway import ProviderConfig, ServerError

CONFIG = json.dumps({"provider": "openai", "apiKey": "sk-test-1234567890wxyz"})


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("k6ai.cli.setup_logging"):
        yield


@pytest.fixture
def call_ai():
    with patch("k6ai.cli.call_ai", new_callable=AsyncMock) as mock:
        mock.return_value = "AI says hi"
        yield mock


class TestMain:
    def test_prints_response(self, call_ai, capsys):
        assert main(["--config", CONFIG, "Suggest load profiles"]) == 0

        assert capsys.readouterr().out == "AI says hi\n"
        config, user_prompt, system_prompt = call_ai.call_args.args
        assert config == {"provider": "openai", "apiKey": "sk-test-1234567890wxyz"}
        assert user_prompt == "Suggest load profiles"
        assert system_prompt is None

    def test_writes_output_file(self, call_ai, tmp_path, capsys):
        out = tmp_path / ".k6-config" / "ai-response.txt"

        assert main(["--config", CONFIG, "--output", str(out), "Hello"]) == 0

        assert out.read_text(encoding="utf-8") == "AI says hi"
        assert capsys.readouterr().out == ""

    def test_reads_prompt_files(self, call_ai, tmp_path):
        prompt = tmp_path / "prompt.txt"
        prompt.write_text("from file", encoding="utf-8")
        system = tmp_path / "system.txt"
        system.write_text("You are a performance testing expert.", encoding="utf-8")

        main(["--config", CONFIG, "--prompt-file", str(prompt), "--system-file", str(system)])

        _, user_prompt, system_prompt = call_ai.call_args.args
        assert user_prompt == "from file"
        assert system_prompt == "You are a performance testing expert."

    def test_system_flag(self, call_ai):
        main(["--config", CONFIG, "--system", "Be brief", "Hello"])
        assert call_ai.call_args.args[2] == "Be brief"

    def test_invalid_config_json(self, call_ai, caplog):
        with caplog.at_level(logging.ERROR, logger="k6ai.cli"):
            assert main(["--config", "{not json", "Hello"]) == 1

        call_ai.assert_not_called()
        assert "Error parsing AI config JSON" in caplog.text

    def test_config_must_be_object(self, call_ai):
        assert main(["--config", "[1, 2]", "Hello"]) == 1
        call_ai.assert_not_called()

    def test_missing_prompt(self, call_ai):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", CONFIG])
        assert exc_info.value.code == 2
        call_ai.assert_not_called()

    def test_failure_exits_nonzero(self, call_ai, capsys):
        call_ai.side_effect = ServerError("OpenAI API error: API request failed: 500")

        assert main(["--config", CONFIG, "Hello"]) == 1
        assert capsys.readouterr().out == ""

    def test_optional_failure_exits_zero(self, call_ai, caplog):
        call_ai.side_effect = ServerError("OpenAI API error: API request failed: 500")

        with caplog.at_level(logging.WARNING, logger="k6ai.cli"):
            assert main(["--config", CONFIG, "--optional", "Hello"]) == 0

        assert "continuing without AI output" in caplog.text

    @pytest.mark.parametrize(
        "error",
        [httpx.DecodingError("bad gzip"), httpx.TooManyRedirects("redirect loop")],
    )
    def test_optional_survives_request_errors(self, mock_client, error, capsys):
        mock_client.request.side_effect = error
        config = json.dumps({"provider": "openai", "apiKey": "sk-test-1234567890wxyz", "maxRetries": 0})

        assert main(["--config", config, "--optional", "Hello"]) == 0
        assert main(["--config", config, "Hello"]) == 1
        assert capsys.readouterr().out == ""

    @pytest.mark.parametrize("flag", ["--prompt-file", "--system-file"])
    def test_missing_prompt_file(self, call_ai, tmp_path, caplog, flag):
        argv = ["--config", CONFIG, flag, str(tmp_path / "missing.txt")]
        if flag == "--system-file":
            argv.append("Hello")

        with caplog.at_level(logging.ERROR, logger="k6ai.cli"):
            assert main(argv) == 1

        call_ai.assert_not_called()
        assert "Error reading prompt file" in caplog.text


class TestLoadConfig:
    def test_parses_json_object(self):
        assert load_config('{"provider": "claude"}') == {"provider": "claude"}

    def test_falls_back_to_settings(self):
        env_settings = Settings(
            _env_file=None, ai_provider="local", ai_api_key="", ai_base_url="http://localhost:11434/v1"
        )
        with patch("k6ai.cli.settings", env_settings):
            config = load_config(None)

        assert isinstance(config, ProviderConfig)
        assert config.provider == "local"
        assert config.base_url == "http://localhost:11434/v1"
        assert config.api_key is None
        assert config.model is None


class TestSettings:
    def test_reads_ai_env(self, monkeypatch):
        monkeypatch.setenv("AI_PROVIDER", "claude")
        monkeypatch.setenv("AI_API_KEY", "ant-key")
        monkeypatch.setenv("AI_TIMEOUT", "1500")
        monkeypatch.setenv("AI_MAX_RETRIES", "0")

        config = ProviderConfig.from_settings(Settings(_env_file=None))

        assert config.provider == "claude"
        assert config.api_key == "ant-key"
        assert config.timeout_ms == 1500
        assert config.max_retries == 0

    def test_defaults(self, monkeypatch):
        for name in ("AI_PROVIDER", "AI_API_KEY", "AI_TIMEOUT", "LOG_LEVEL", "LOG_JSON"):
            monkeypatch.delenv(name, raising=False)

        s = Settings(_env_file=None)

        assert s.ai_provider == "openai"
        assert s.ai_timeout is None
        assert s.log_level == "INFO"
        assert s.log_json is False


class TestLogging:
    @pytest.fixture
    def root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield root
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_formatter(self):
        record = logging.LogRecord(
            "k6ai.gateway", logging.WARNING, __file__, 1, "Rate limited. Retrying after %dms...", (5000,), None
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "k6ai.gateway"
        assert data["message"] == "Rate limited. Retrying after 5000ms..."
        assert "exception" not in data
        assert "provider" not in data

    def test_json_formatter_includes_provider(self):
        record = logging.LogRecord("k6ai.gateway", logging.INFO, __file__, 1, "AI API call successful", (), None)
        record.provider = "claude"

        assert json.loads(JSONFormatter().format(record))["provider"] == "claude"

    def test_setup_logging_json(self, root_logger):
        setup_logging(level="debug", json_logs=True)

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_setup_logging_text(self, root_logger):
        setup_logging(level="WARNING", json_logs=False)

        assert root_logger.level == logging.WARNING
        assert not isinstance(root_logger.handlers[0].formatter, JSONFormatter)
