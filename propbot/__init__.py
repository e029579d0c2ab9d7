"""
propbot - SMS agent for workspace, property and market questions
"""

__version__ = "0.3.0"
__logo__ = "🏠"
