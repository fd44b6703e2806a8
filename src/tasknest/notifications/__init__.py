"""
Notification subsystem.

Components:
- notification_models.py: Notification, NotificationType
- notification_engine.py: due-date reminders + read flags
"""
