"""Service layer for tasktree: task manager, hierarchy checks and queries."""
