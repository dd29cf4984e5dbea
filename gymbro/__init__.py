"""Gymbro: chapters, daily check-ins and a chat coach for personal training."""

__version__ = "0.1.0"
