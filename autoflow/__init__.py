"""Automation planning service: Groq-backed planner in front of ActivePieces."""
