"""TypeSpeed: typing practice on real source code."""

__version__ = "0.1.0"
