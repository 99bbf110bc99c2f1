"""
Task subsystem.

Components:
- task_models.py: data structures (Task, RawTask, Direction) + (de)serialization
- task_tree.py: pure copy-on-write operations on the task tree
- ingestion.py: maps external {title, subtasks?} records to Tasks
- task_store.py: JSON-file key-value store + tree payload encoding
"""
