"""connwatch — HTTP reachability monitor with a live status feed."""

__version__ = "0.1.0"
