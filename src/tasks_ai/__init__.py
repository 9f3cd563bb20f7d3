"""Personal task tracker with LLM-assisted break down into subtasks."""

__version__ = "0.1.0"
