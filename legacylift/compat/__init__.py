#!/usr/bin/env python3
# CUI // SP-CTI
"""Small compatibility helpers shared across LegacyLift modules."""
