"""Shared utilities for todo-goblin."""
