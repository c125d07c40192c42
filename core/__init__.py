"""core/ -- Kernel of the account store: process-wide configuration.

Layer rule: core/ imports only stdlib + third-party libraries. It does NOT
import from accounts/ or main.py.
"""
