"""lockguard - npm dependency threat scanner."""

__version__ = "1.0.0"
