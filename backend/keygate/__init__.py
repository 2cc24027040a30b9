"""keygate: API key issuance, permission policy and rotation lifecycle."""

__version__ = "1.0.0"
