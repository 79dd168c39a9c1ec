"""Errors raised while reading ``GUESTRECON_*`` settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable; ``variable`` names the offending one."""

    def __init__(self, variable: str, problem: str) -> None:
        super().__init__(f"{variable} {problem}")
        self.variable = variable
        self.problem = problem
