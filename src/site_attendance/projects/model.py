from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Project:
    """Read-only view of a project as seen by attendance.

    Projects are created and edited elsewhere; here we only need the id and the
    timezone that defines the project's calendar day.
    """

    project_id: int
    code: str
    name: str
    timezone: Optional[str] = None
    is_active: bool = True
