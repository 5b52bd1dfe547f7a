"""jxdeps - dependency resolution and lock-file management for Java projects."""

__version__ = "0.3.0"
