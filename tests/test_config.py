from __future__ import annotations

import logging

import pytest

from pdf_manager.config import Settings


def test_defaults() -> None:
    settings = Settings.from_env({})

    assert settings == Settings()
    assert settings.xref_format == "table"
    assert settings.strict is False
    assert settings.prune is True
    assert settings.compress is True
    assert settings.logging_level == logging.WARNING


def test_environment_overrides() -> None:
    settings = Settings.from_env(
        {
            "PDF_MANAGER_XREF_FORMAT": "Stream",
            "PDF_MANAGER_STRICT": "yes",
            "PDF_MANAGER_PRUNE": "off",
            "PDF_MANAGER_COMPRESS": "0",
            "PDF_MANAGER_LOG_LEVEL": "debug",
        }
    )

    assert settings == Settings(
        xref_format="stream", strict=True, prune=False, compress=False, log_level="DEBUG"
    )
    assert settings.logging_level == logging.DEBUG


def test_blank_values_fall_back_to_defaults() -> None:
    assert Settings.from_env({"PDF_MANAGER_STRICT": "  ", "PDF_MANAGER_XREF_FORMAT": ""}) == Settings()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PDF_MANAGER_STRICT", "maybe"),
        ("PDF_MANAGER_PRUNE", "2"),
        ("PDF_MANAGER_COMPRESS", "zip"),
        ("PDF_MANAGER_XREF_FORMAT", "compressed"),
        ("PDF_MANAGER_LOG_LEVEL", "loud"),
    ],
)
def test_invalid_values_name_the_variable(name: str, value: str) -> None:
    with pytest.raises(ValueError, match=name):
        Settings.from_env({name: value})


def test_from_env_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PDF_MANAGER_XREF_FORMAT", "stream")
    assert Settings.from_env().xref_format == "stream"


def test_settings_validate_fields() -> None:
    with pytest.raises(ValueError):
        Settings(xref_format="compressed")
    with pytest.raises(ValueError):
        Settings(log_level="verbose")
