"""GreenHub - command-line client for the GreenHub data collection service."""

__version__ = "0.4.0"
