"""UtiOpia - access control and moderation for an anonymous campus message board."""

__version__ = "0.1.0"
