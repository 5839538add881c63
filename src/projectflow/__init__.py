"""Projectflow - project and task management backend.

This package provides project, pipeline and task tracking backed by
PostgreSQL, with a lifecycle engine that derives each project's status,
progress and audit history from the state of its delivery pipeline.
"""

__version__ = "0.1.0"
