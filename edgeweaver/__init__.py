"""EdgeWeaver package initialization.

EdgeWeaver keeps a local cache of node and edge taxonomies in step with a
graph database and commits batches of typed relations into it. The primary
entry point is :func:`EdgeWeaver_tool`; :class:`EdgeWeaverApp` exposes the
same session as Python methods.
"""

from .api import EdgeWeaver_tool, EdgeWeaverApp

__all__ = ["EdgeWeaver_tool", "EdgeWeaverApp"]
