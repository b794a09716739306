"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskPatch) + field validation
- task_query.py: filter / sort / pagination engine shared by every backend
- task_stats.py: per-status counts and completion rate
- memory_store.py: volatile in-process backend
- task_store.py: SQLite-backed durable backend
- task_api.py: high-level operations used by the rest of the app
"""
