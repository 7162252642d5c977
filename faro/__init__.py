"""faro: convergencia declarativa de hosts."""

__version__ = "1.0.0"
