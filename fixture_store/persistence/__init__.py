"""
Persistence back-ends for the model layer. Contains the adapter interface that the model layer talks to, and an
in-memory, fixture-backed implementation of it for developing and testing without a live backend.
"""
