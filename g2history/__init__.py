"""
G2 History API: players, seasons, SoloQ ranking and upcoming matches.

v1.0: FastAPI handlers over a sqlite store, Playwright scrapes, in-process cache.
"""

__version__ = "1.0.0"
