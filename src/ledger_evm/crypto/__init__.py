"""
Cryptographic primitives used by the execution layer.
"""
