# jsonwire/decorators/__init__.py
#
# Re-exports decorators from their respective modules.

from .command import for_command

__all__ = [
    "for_command",
]
