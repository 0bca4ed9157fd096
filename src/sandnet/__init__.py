"""
Sandnet: disposable Sui localnets for integration tests.

Provisions an isolated node per run, funds synthetic accounts, executes
transactions with gas-conflict recovery, and records the objects they touch.
"""

__version__ = "0.1.0"
