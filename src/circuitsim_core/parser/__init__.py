# src/circuitsim_core/parser/__init__.py
from .parser import NetlistParser, VALUE_UNITS, default_ports
from .exceptions import BaseParsingError, ParsingError, SchemaValidationError

__all__ = [
    # Parser
    "NetlistParser", "VALUE_UNITS", "default_ports",
    # Exceptions
    "BaseParsingError", "ParsingError", "SchemaValidationError",
]
