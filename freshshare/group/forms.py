"""Forms for the group blueprint."""

from flask_wtf import FlaskForm
from wtforms import SelectField, StringField
from wtforms.validators import DataRequired

from freshshare.core.constants import VOTE_CHOICES


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class ProductSuggestionForm(FlaskForm):
    """Form for suggesting a product to a group."""

    name = StringField("Name", filters=[_strip], validators=[DataRequired()])
    note = StringField("Note", filters=[_strip])
    imageUrl = StringField("Image URL", filters=[_strip])  # noqa: N815
    productUrl = StringField("Product URL", filters=[_strip])  # noqa: N815


class VoteForm(FlaskForm):
    """Form for voting on a suggested product."""

    vote = SelectField(
        "Vote", choices=[(choice, choice) for choice in VOTE_CHOICES]
    )
