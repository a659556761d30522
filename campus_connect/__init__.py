"""Campus Connect: university volunteering API."""

__version__ = "1.0.0"
