"""Services for the group blueprint."""
