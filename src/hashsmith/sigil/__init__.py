"""
Sigil - Operator identity and transaction signing.
"""
