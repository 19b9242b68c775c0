"""Subtitle timeline editing and audio reconstruction for generated speech."""

__version__ = "0.1.0"
