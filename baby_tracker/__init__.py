"""
Baby Tracker - multi-family tracking of feeds, diapers, sleep, medicine and
measurements.
"""

__version__ = "0.1.0"
