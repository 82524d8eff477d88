"""Application infrastructure shared by the bot layer.

This package must NEVER import from ``bot/``; the ``vkteams`` SDK never
imports from it.
"""

from core.logger import VKTeamsLogger

__all__ = [
    "VKTeamsLogger",
]
