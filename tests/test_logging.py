"""Tests for logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from context_rag.config import Environment, Settings
from context_rag.logging_config import DevFormatter, JSONFormatter, setup_logging


def _record(
    msg: str = "Selected passages",
    level: int = logging.INFO,
    extra: dict[str, object] | None = None,
    exc_info: object = None,
) -> logging.LogRecord:
    return logging.getLogger("context_rag.retrieval").makeRecord(
        name="context_rag.retrieval",
        level=level,
        fn="retriever.py",
        lno=120,
        msg=msg,
        args=(),
        exc_info=exc_info,  # type: ignore[arg-type]
        func="fetch",
        extra=extra,
    )


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_core_fields(self) -> None:
        """Level, logger, message and location are emitted."""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "context_rag.retrieval"
        assert data["message"] == "Selected passages"
        assert data["location"].endswith("fetch:120")
        assert "T" in data["timestamp"]

    def test_extra_fields(self) -> None:
        """Fields passed through extra= are collected under "extra"."""
        record = _record(extra={"top_k": 5, "sources": 3})

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"] == {"top_k": 5, "sources": 3}

    def test_no_extra_key_without_fields(self) -> None:
        """Records without extra fields have no "extra" key."""
        data = json.loads(JSONFormatter().format(_record()))
        assert "extra" not in data

    def test_exception(self) -> None:
        """Tracebacks are included."""
        try:
            raise ValueError("index down")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(
            JSONFormatter().format(_record("Search failed", logging.ERROR, exc_info=exc_info))
        )

        assert "ValueError: index down" in data["exception"]


class TestDevFormatter:
    """Tests for development formatter."""

    def test_plain_line(self) -> None:
        """Level, logger and message share one line."""
        output = DevFormatter().format(_record(level=logging.WARNING))

        assert "WARNING" in output
        assert "context_rag.retrieval | Selected passages" in output
        assert "=" not in output

    def test_extra_fields_appended(self) -> None:
        """Extra fields follow the message as key=value pairs."""
        output = DevFormatter().format(_record(extra={"source": "a.pdf", "chunks": 4}))

        assert output.endswith("| source=a.pdf chunks=4")


class TestSetupLogging:
    """Tests for logging setup."""

    @pytest.mark.parametrize(
        ("environment", "formatter"),
        [
            (Environment.PRODUCTION, JSONFormatter),
            (Environment.DEVELOPMENT, DevFormatter),
        ],
    )
    def test_formatter_follows_environment(
        self, environment: Environment, formatter: type[logging.Formatter]
    ) -> None:
        """JSON outside development, console format inside it."""
        with patch(
            "context_rag.logging_config.get_settings",
            return_value=Settings(environment=environment),
        ):
            root = setup_logging()

        assert root is logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, formatter)

    def test_overrides(self) -> None:
        """Level and output format can be forced."""
        with patch(
            "context_rag.logging_config.get_settings",
            return_value=Settings(environment=Environment.DEVELOPMENT),
        ):
            root = setup_logging(level="DEBUG", json_output=True)

        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_quiets_client_loggers(self) -> None:
        """HTTP and database client libraries only log warnings and above."""
        setup_logging(level="DEBUG", json_output=False)

        for name in ("httpx", "httpcore", "postgrest"):
            assert logging.getLogger(name).level == logging.WARNING
