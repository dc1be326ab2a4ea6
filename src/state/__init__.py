"""
Task state persistence.

Each task is one S3 object whose body is the ISO-8601 timestamp of the last
touch; the listing of tasks is rendered through `TaskIndex`.
"""

from .models import TaskIndex

__all__ = ["TaskIndex"]
