"""Windowed productivity statistics over a user's tasks."""
