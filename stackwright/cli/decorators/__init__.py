"""CLI decorators"""

from .project import credentials_required, find_project_root, project_required

__all__ = [
    'credentials_required',
    'find_project_root',
    'project_required',
]
