"""Authentication helpers shared by the API blueprints."""
