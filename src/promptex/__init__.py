"""PromptEx — a personal prompt library kept as markdown files."""

__version__ = "0.1.0"
