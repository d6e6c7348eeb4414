from sideline.extensions import db

# Collection names. Every entity lives in its own collection inside the
# schemaless `record` table; relationships are plain id fields in `data`.
TEAM = 'Team'
GAME = 'Game'
PLAYER = 'Player'
TEAM_ROSTER = 'TeamRoster'
TEAM_INVITATION = 'TeamInvitation'
PLAY_TIME_RECORD = 'PlayTimeRecord'
GOAL = 'Goal'
GAME_NOTE = 'GameNote'
SUBSTITUTION = 'Substitution'
LINEUP_ASSIGNMENT = 'LineupAssignment'
PLAYER_AVAILABILITY = 'PlayerAvailability'
GAME_PLAN = 'GamePlan'
PLANNED_ROTATION = 'PlannedRotation'
FORMATION = 'Formation'
FORMATION_POSITION = 'FormationPosition'

COLLECTIONS = (
    TEAM, GAME, PLAYER, TEAM_ROSTER, TEAM_INVITATION, PLAY_TIME_RECORD, GOAL,
    GAME_NOTE, SUBSTITUTION, LINEUP_ASSIGNMENT, PLAYER_AVAILABILITY, GAME_PLAN,
    PLANNED_ROTATION, FORMATION, FORMATION_POSITION,
)

class Record(db.Model):
    collection = db.Column(db.String(64), primary_key=True)
    id = db.Column(db.String(64), primary_key=True)
    data = db.Column(db.JSON, nullable=False, default=dict)

    def to_dict(self):
        return {**(self.data or {}), 'id': self.id}
