"""Extension layer — lifecycle hooks via pluggy.

Discovery: ``allocctl.plugins`` entry points plus ``.allocctl/plugins/*.py``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from allocctl.plugins.hookspecs import hookimpl
from allocctl.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
