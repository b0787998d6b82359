from __future__ import annotations

from datetime import date, datetime
from typing import Callable

from ..common.datetime_utils import local_today, now_utc
from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import NotFoundError
from .model import Project
from .repository import ProjectRepository


class ProjectCalendar:
    """Single day policy: a project's calendar day is taken in the project's
    timezone, falling back to the deployment default.

    Both the duplicate check and the stored ``work_date`` go through here.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        *,
        default_timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._projects = projects
        self._default_tz = default_timezone
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def require_project(self, project_id: int) -> Project:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError(f"Project {project_id} does not exist")
        return project

    def timezone_for(self, project: Project) -> str:
        return project.timezone or self._default_tz

    def today(self, project: Project, *, now: datetime | None = None) -> date:
        return local_today(self.timezone_for(project), now=now or self._clock())

    def default_today(self) -> date:
        return local_today(self._default_tz, now=self._clock())
