"""Generate note articles from Markdown reference files with a hosted LLM."""

__version__ = "0.1.0"
