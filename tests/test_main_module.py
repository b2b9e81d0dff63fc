"""Test for running the builder as a module."""

import runpy
from unittest.mock import patch


def test_main_module_entrypoint() -> None:
    """Tests that `python -m bento.builder` calls the CLI."""
    with patch("bento.builder.cli.main") as mock_main:
        runpy.run_module("bento.builder", run_name="__main__")
    mock_main.assert_called_once()
