"""Presentation layer."""

from personachat.presentation.console import ConsoleApp, describe_error

__all__ = ["ConsoleApp", "describe_error"]
