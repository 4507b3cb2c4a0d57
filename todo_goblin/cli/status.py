"""``tgbl status``: what each configured project looks like right now."""

from dataclasses import dataclass, field, replace

import structlog

from todo_goblin.catalog import catalog_for
from todo_goblin.config.settings import GoblinSettings, ProjectConfig
from todo_goblin.engine.eligibility import eligible
from todo_goblin.engine.workspace import WorkspaceManager
from todo_goblin.models.domain import ReviewRecord, WorktreeInfo
from todo_goblin.providers.base import ReviewProvider

log = structlog.get_logger(__name__)


@dataclass
class ProjectStatus:
    name: str
    project: ProjectConfig
    available_tasks: int = 0
    open_records: list[ReviewRecord] = field(default_factory=list)
    workspaces: list[WorktreeInfo] = field(default_factory=list)
    error: str | None = None


async def collect_status(
    settings: GoblinSettings,
    reviews: ReviewProvider,
    workspaces: WorkspaceManager,
) -> list[ProjectStatus]:
    """Gather per-project status; one project's failure does not stop the others."""
    report: list[ProjectStatus] = []
    for name, project in settings.projects.items():
        status = ProjectStatus(name=name, project=project)
        try:
            tasks = await catalog_for(project, reviews).read(name, project)
            status.open_records = [
                replace(record, project_name=name) for record in await reviews.list_open(project.repo)
            ]
            status.workspaces = await workspaces.list_active(project.cwd)
            status.available_tasks = len(eligible(tasks, status.open_records, status.workspaces))
        except Exception as e:
            log.warning("status_check_failed", project=name, error=str(e))
            status.error = str(e) or type(e).__name__
        report.append(status)
    return report


def render_status(report: list[ProjectStatus]) -> str:
    lines = ["📊 Todo-goblin Status Report", "=========================="]
    for status in report:
        lines.append("")
        lines.append(f"🔧 Project: {status.name}")
        lines.append(f"   Repository: {status.project.repo}")
        lines.append(f"   Directory: {status.project.cwd}")
        if status.error:
            lines.append(f"   ❌ Error checking status: {status.error}")
            continue
        lines.append(f"   📋 Available tasks: {status.available_tasks}")
        lines.append(f"   🔄 Open PRs: {len(status.open_records)}")
        lines.append(f"   🌿 Active worktrees: {len(status.workspaces)}")
        if status.open_records:
            lines.append("   Open PRs:")
            lines.extend(f"     - {record.title} (#{record.number})" for record in status.open_records)
        if status.workspaces:
            lines.append("   Active worktrees:")
            lines.extend(f"     - {wt.path} ({wt.branch})" for wt in status.workspaces)
    return "\n".join(lines)
