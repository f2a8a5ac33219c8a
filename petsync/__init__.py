"""Link a human and a pet Strava account and mirror activities between them."""

__version__ = "0.1.0"
