"""wextrunk - split Trunk's index.html into browser-extension pages and scripts."""

__version__ = "0.1.0"
