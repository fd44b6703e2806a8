"""
Core.

Components:
- ports.py: Protocols the core depends on
- state.py: AppState, TaskFilters, derived task view
- controller.py: TaskController (commands + subscriptions)
- export.py: JSON snapshot export
"""
