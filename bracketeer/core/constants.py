"""Global constants for the bracketeer application."""

# Firestore collections
TOURNAMENTS_COLLECTION = "tournaments"
TEAMS_COLLECTION = "tournament_teams"
MATCHES_COLLECTION = "tournament_matches"
TOURNAMENT_ADMINS_COLLECTION = "tournament_admins"
ORGANIZATION_ADMINS_COLLECTION = "organization_admins"

# Tournament formats
FORMAT_SINGLE_ELIMINATION = "SingleElimination"
FORMAT_ROUND_ROBIN = "RoundRobin"
ELIMINATION_FORMATS = frozenset({FORMAT_SINGLE_ELIMINATION})

# Tournament lifecycle statuses
STATUS_DRAFT = "Draft"
STATUS_OPEN = "Open"
STATUS_REGISTRATION_CLOSED = "RegistrationClosed"
STATUS_IN_PROGRESS = "InProgress"
STATUS_POSTPONED = "Postponed"
STATUS_COMPLETED = "Completed"
STATUS_CANCELLED = "Cancelled"

# Generation is only allowed before play starts
GENERATION_STATUSES = frozenset(
    {STATUS_DRAFT, STATUS_OPEN, STATUS_REGISTRATION_CLOSED}
)

# Match statuses
MATCH_SCHEDULED = "Scheduled"
MATCH_COMPLETED = "Completed"
MATCH_FORFEIT = "Forfeit"

# Team statuses
TEAM_ACTIVE = "Active"
TEAM_ELIMINATED = "Eliminated"
TEAM_WINNER = "Winner"

# Scoring defaults
DEFAULT_POINTS_WIN = 3
DEFAULT_POINTS_TIE = 1
DEFAULT_POINTS_LOSS = 0

# Tiebreakers
TB_HEAD_TO_HEAD = "HeadToHead"
TB_GOAL_DIFFERENTIAL = "GoalDifferential"
TB_GOALS_SCORED = "GoalsScored"
DEFAULT_TIEBREAKER_ORDER = (TB_HEAD_TO_HEAD, TB_GOAL_DIFFERENTIAL, TB_GOALS_SCORED)

MIN_TEAMS = 2
TIED_GROUP_MIN_SIZE = 3

# Firestore allows 500 writes per batch
FIRESTORE_BATCH_LIMIT = 400
