"""Tests for logging configuration."""

import logging

from voicerules.infrastructure.logging_setup import configure_logging


def test_explicit_level():
    assert configure_logging("debug") == logging.DEBUG


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOGLEVEL", "ERROR")
    assert configure_logging() == logging.ERROR


def test_unknown_level_defaults_to_info(monkeypatch):
    monkeypatch.delenv("LOGLEVEL", raising=False)
    assert configure_logging("chatty") == logging.INFO
