"""Template processing utilities"""

import string
from typing import Any, Dict


def render_template(template: str, variables: Dict[str, Any]) -> str:
    """
    Fill a ``string.Template`` source

    Generated code uses plenty of ``{}`` and ``%``, so scaffolds are
    written with ``$name`` placeholders instead of format fields.

    Raises:
        KeyError: If a placeholder has no value
    """
    return string.Template(template).substitute(variables)
