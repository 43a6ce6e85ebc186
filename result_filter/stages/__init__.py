"""result_filter.stages

Builtin filter stages.

Importing this package registers builtin stages in the global registry.
"""

# Import side-effect: stage registration decorators.
from . import normalize  # noqa: F401
from . import dedupe  # noqa: F401
from . import severity  # noqa: F401
from . import fix_state  # noqa: F401
from . import suppress  # noqa: F401
from . import policy  # noqa: F401
from . import summary  # noqa: F401
from . import ordering  # noqa: F401

__all__ = [
    "normalize",
    "dedupe",
    "severity",
    "fix_state",
    "suppress",
    "policy",
    "summary",
    "ordering",
]
