"""AI-backed writing helpers."""

from agents.base_agent import BaseAgent
from agents.proofreader_agent import ProofreaderAgent

__all__ = [
    "BaseAgent",
    "ProofreaderAgent",
]
