"""
Token Ledger Service Django project.
"""
