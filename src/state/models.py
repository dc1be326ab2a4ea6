from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class TaskIndex(BaseModel):
    """
    Listing of every tracked task, as returned by `GET /`.

    Fields
    - tasks: normalized task names in the order the store reports them
      (S3 lists keys in ascending UTF-8 byte order).
    """

    tasks: List[str] = Field(default_factory=list, description="Normalized task names")