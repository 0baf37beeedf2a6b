"""
Backends for evaluating MLD models.

- CasADi: symbolic state update, output and inequality functions
"""

from mldloops.backends.casadi import CasadiBackend

__all__ = ["CasadiBackend"]
