# tests/property/__init__.py
"""Property-based tests for sandnet.

Property tests check invariants over generated inputs:
- Port negotiation and genesis remaps never produce duplicate ports
- Account derivation is deterministic and label-unique
- Funding snapshots are satisfied only when every requirement holds
"""
