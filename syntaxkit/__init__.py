"""Load, link and query Sublime Text style syntax definitions, scopes and scope stacks."""

__version__ = "0.1.0"