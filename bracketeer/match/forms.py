"""Forms for the match blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import IntegerField, StringField, ValidationError
from wtforms.validators import DataRequired, InputRequired, Length, Optional


class ScoreForm(FlaskForm):
    """Score entry for a tournament match."""

    home_score = IntegerField("Home Score", validators=[InputRequired()])
    away_score = IntegerField("Away Score", validators=[InputRequired()])
    overtime_winner_id = StringField("Overtime Winner", validators=[Optional()])

    def validate_home_score(self, field):
        """Validate that the score is not negative."""
        if field.data is not None and field.data < 0:
            raise ValidationError("Scores cannot be negative.")

    def validate_away_score(self, field):
        """Validate that the score is not negative."""
        if field.data is not None and field.data < 0:
            raise ValidationError("Scores cannot be negative.")


class ForfeitForm(FlaskForm):
    """Forfeit declaration for a tournament match."""

    forfeiting_team_id = StringField("Forfeiting Team", validators=[DataRequired()])
    reason = StringField("Reason", validators=[Optional(), Length(max=500)])
