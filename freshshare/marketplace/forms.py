"""Forms for the marketplace blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField
from wtforms.validators import InputRequired, NumberRange


class PiecesForm(FlaskForm):
    """Form for setting the caller's pieces in a listing's current case.

    Zero is a valid request, so the field only carries a range check.
    """

    pieces = IntegerField(
        "Pieces",
        validators=[NumberRange(min=0, message="Must be a whole number, 0 or more.")],
    )


class GroupBuyCommitForm(FlaskForm):
    """Form for committing to whole cases of a group buy."""

    cases = IntegerField("Cases", validators=[InputRequired(), NumberRange(min=1)])
