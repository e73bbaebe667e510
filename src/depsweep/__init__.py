"""depsweep - find, score and sweep heavy dependency folders."""

__version__ = "0.3.0"
