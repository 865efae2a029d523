"""
clubslots - coach availability and booking on top of Google Calendar.
"""

__version__ = "0.3.0"
