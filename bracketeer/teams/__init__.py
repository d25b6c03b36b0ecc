"""Tournament teams."""

from .models import Team
from .services import TeamService

__all__ = ["Team", "TeamService"]
