"""
Match Narrator
Live-Erfassung von Spielereignissen mit Wettbewerbs-, Team- und Kaderverwaltung
"""

__version__ = "1.0.0"

# NOTE:
# Avoid importing configuration or the database layer at package import time so
# that "import matchnarrator" stays side-effect free for unit tests.

__all__ = []
