"""
Terminal rendering for the yield router CLI.
"""

from yield_router.ui.tables import (
    allocation_table,
    decision_panel,
    opportunities_table,
    route_action_panel,
    routes_table,
    sustainability_panel,
)

__all__ = [
    "allocation_table",
    "decision_panel",
    "opportunities_table",
    "route_action_panel",
    "routes_table",
    "sustainability_panel",
]
