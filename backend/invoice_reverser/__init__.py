"""TIMS invoice reverser — credit-note and reissue pipeline for fiscal devices."""

__version__ = "0.1.0"
