"""accounts/ -- File-backed user account records for the account store.

Layer rule: accounts/ imports only stdlib, third-party libraries, and core/.
main.py imports from accounts/, not the other way around.
"""
