"""Customer and admin JSON views."""
