"""
Sitio Kernel - layered configuration overrides

Operator-editable reference data for the sitio profile system with:
- Compiled-in defaults per configuration domain
- Whole-value overrides persisted through an abstract key-value adapter
- Atomic override writes paired with an append-only change audit
- Income cluster derivation from the poverty threshold
"""

__version__ = "0.1.0"
