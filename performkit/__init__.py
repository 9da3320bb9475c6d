"""performkit: selection, renormalization and expressive scaling of performance documents."""

__version__ = "0.1.0"
