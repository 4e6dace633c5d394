"""Repositories."""
from src.state.repositories.settings import SettingsRepository
__all__ = ["SettingsRepository"]
