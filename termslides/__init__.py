"""Key bindings, commands, configuration, file watching and snippet execution for terminal slideshows."""

__version__ = "0.1.0"

__all__ = ["__version__"]