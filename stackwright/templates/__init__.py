"""Source templates for generated function entry points"""

from . import cron, endpoint, project, worker
from .common import LOCAL_PREAMBLE, REMOTE_PREAMBLE, RESPONSE_HELPERS
from ..constants import Role

_BODIES = {
    Role.ENDPOINT: endpoint,
    Role.WORKER: worker,
    Role.CRON: cron,
}


def get_template(role: Role, is_local: bool) -> str:
    """Assemble the full entry point template for a role

    Args:
        role: Function role
        is_local: Whether the entry point is for local invocation

    Returns:
        Template text with ``string.Template`` placeholders
    """
    if role not in _BODIES:
        raise ValueError(f"No entry point template for role: {role}")

    module = _BODIES[role]
    preamble = LOCAL_PREAMBLE if is_local else REMOTE_PREAMBLE
    helpers = RESPONSE_HELPERS if role == Role.ENDPOINT else ''
    body = module.LOCAL if is_local else module.REMOTE
    return preamble + helpers + body
