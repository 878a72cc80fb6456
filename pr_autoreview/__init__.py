"""Automated Gemini review of the newest open pull request."""
