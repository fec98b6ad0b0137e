"""Messaging, nested agent stacks, terminal and headless sessions, and token statistics for a tool-using coding agent."""

__version__ = "0.1.0"