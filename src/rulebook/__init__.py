"""
Rulebook - rule model compiler

Rulebook compiles rule-definition files written in a declarative rules DSL
into a single flat rule table, expanding ``importer!`` directives against
published rule packages.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
