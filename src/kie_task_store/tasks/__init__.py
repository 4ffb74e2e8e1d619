"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, StoreState, LoadOutcome)
- task_store.py: SQLite snapshot-file storage + query/update helpers
- task_api.py: small lifecycle helpers used by host applications
"""
