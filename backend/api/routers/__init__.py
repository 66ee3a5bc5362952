"""API Routers package."""
from . import listing, shifts, workplaces

__all__ = ['listing', 'shifts', 'workplaces']
