"""Portal e2e harness.

Drives end-to-end checks of a Backstage-based portal's GitHub integration:
- signed synthetic webhook deliveries (push, team, membership, ping)
- GitHub repository/team setup through the REST API
- eventual-consistency polling of the catalog
"""

__version__ = "0.1.0"

from portal_e2e.config import HarnessSettings

__all__ = ["__version__", "HarnessSettings"]
