"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskDraft, TaskStatus, TaskPriority) + field validation
- task_store.py: TaskRepository over the persisted task collection
- refresh_scheduler.py: periodic refresh loop
"""
