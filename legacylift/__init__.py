#!/usr/bin/env python3
# CUI // SP-CTI
"""LegacyLift — legacy codebase health assessment and migration planning.

Three layers, each consuming only the immutable output of the previous one:

  legacylift.analysis       scanner, five analyzers, health aggregation
  legacylift.modernization  migration planner and artifact generators
  legacylift.schemas        frozen dataclass records exchanged between stages
"""

__version__ = "1.0.0"
