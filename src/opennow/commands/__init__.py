"""Built-in CLI commands: ``preview``, ``login``, ``providers`` and ``config``."""
