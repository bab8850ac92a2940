"""momentguard: content moderation engine for user-generated text."""

__version__ = "0.1.0"
