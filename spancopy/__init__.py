"""Copy several source trees onto removable volumes, asking for a new one when space runs out."""

__version__ = "0.1.0"
