"""Shared helpers for validating JSON request bodies with flask-wtf forms."""

from freshshare.errors import ValidationError


def validate_or_raise(form):
    """Validate ``form`` and raise a ValidationError with the first message."""
    if form.validate():
        return form
    for field_name, messages in form.errors.items():
        if messages:
            field = getattr(form, field_name, None)
            label = field.label.text if field is not None else field_name
            raise ValidationError(f"{label}: {messages[0]}")
    raise ValidationError()
