"""Template rendering for delegate prompts and review-record bodies."""

from .engine import SecureTemplateEngine

__all__ = ["SecureTemplateEngine"]
