"""
tasknest: local personal task manager.

Components:
- storage/: key-value backends + JSON collection adapter
- tasks/: task model, repository, periodic refresh loop
- notifications/: due-date reminders
- analytics/: windowed statistics
- auth/: local identity provider
- core/: application state controller, ports, export
- cli/, connectors/: console front-end
"""

__version__ = "0.1.0"
