"""Task lifecycle controller: desire, reconcile and admission mutation of task Jobs."""

__version__ = "0.1.0"
