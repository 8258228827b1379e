"""Order book driven by ITCH-style messages delivered through a bounded FIFO."""

__version__ = "0.1.0"