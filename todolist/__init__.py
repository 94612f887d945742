"""Local task list manager with durable JSON slot storage."""

__version__ = "0.1.0"
