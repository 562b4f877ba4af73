"""
Brainswarm — SQLAlchemy ORM models package.

Imports all model classes so Alembic and `create_all` can discover them
through a single ``import brainswarm.models``.
"""

from brainswarm.models.user import User                  # noqa: F401
from brainswarm.models.team import Team                  # noqa: F401
from brainswarm.models.membership import Membership      # noqa: F401
from brainswarm.models.entry import Entry                # noqa: F401
from brainswarm.models.access_token import AccessToken   # noqa: F401
