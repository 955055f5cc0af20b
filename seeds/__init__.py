"""
Seed units. Each module defines one ``seed = JsonSeed(...)``.
"""
