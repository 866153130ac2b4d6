"""Local activity time tracker with day and range breakdowns."""

__version__ = "0.1.0"
