"""
taskcal - schedule tasks into the earliest free slot of your calendar.
"""

__version__ = "0.1.0"
