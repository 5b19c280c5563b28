__all__ = ["main", "colorlog", "config"]

__version__ = "1.0.0"
