"""Content moderation engine.

This package provides:
- Detection: scoring text against configured violation categories
- Blocking: turning scores into ALLOWED / FLAGGED_FOR_REVIEW / BLOCKED
- The engine: one ``moderate`` call that detects, decides, records and archives
- Review: closing human review of flagged content
"""
