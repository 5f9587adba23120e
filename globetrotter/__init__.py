"""Globetrotter: a geography trivia round engine served over FastAPI."""
