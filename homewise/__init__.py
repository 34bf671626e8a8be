"""Homewise backend - home affordability analysis and advisor chat."""
__version__ = "0.3.0"
