"""
API v1 Router

All project endpoints are prefixed with /projects.
"""

from fastapi import APIRouter
from . import assignment, groups, milestones, payments, projects, time_entries

router = APIRouter()

# Groups and assignment first: /projects/groups, /projects/available and
# /projects/mine must match before /projects/{project_id}.
router.include_router(groups.router, prefix="/projects", tags=["Project Groups"])
router.include_router(assignment.router, prefix="/projects", tags=["Assignment"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(payments.router, prefix="/projects", tags=["Payments"])
router.include_router(milestones.router, prefix="/projects", tags=["Milestones"])
router.include_router(time_entries.router, prefix="/projects", tags=["Time Entries"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/projects",
            "/projects/available",
            "/projects/mine",
            "/projects/groups",
            "/projects/groups/{groupId}",
            "/projects/{projectId}",
            "/projects/{projectId}/payments",
            "/projects/{projectId}/milestones",
            "/projects/{projectId}/time-entries",
            "/projects/{projectId}/pick",
            "/projects/{projectId}/release",
        ],
    }
