"""
Myra Discord Assistant Package

A Discord assistant that delegates every reply to one of several
interchangeable generation backends:
- LLM-assisted routing with a deterministic rule fallback
- Uniform adapters for OpenAI, Claude, Gemini, Grok, Perplexity and Mistral
- Image, video and YouTube analysis through a multimodal backend
- Image generation with a secondary backend fallback
- Short-lived, bounded conversation memory
"""

# Package metadata
__title__ = "Myra"
__version__ = "0.1.0"
__description__ = "Multi-backend Discord assistant"
__license__ = "MIT"

# Avoid importing discord.py at package import time to keep tests lightweight
__all__ = []


def __getattr__(name: str):
    """Lazy loader so that `myra.MyraBot` does not pull discord.py on import."""
    if name == "MyraBot":
        from .core.bot import MyraBot as _MyraBot
        return _MyraBot
    raise AttributeError(name)
