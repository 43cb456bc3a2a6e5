"""YAML-driven scenario replay against an in-process chain."""

from .scenario_runner import ScenarioError, ScenarioReport, ScenarioRunner, StepResult, main

__all__ = [
    "ScenarioError",
    "ScenarioReport",
    "ScenarioRunner",
    "StepResult",
    "main",
]
