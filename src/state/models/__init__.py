"""State models."""
from src.state.models.entry import ConfigEntry
__all__ = ["ConfigEntry"]
