"""Role-based access control for the school planner."""

__version__ = "0.1.0"
