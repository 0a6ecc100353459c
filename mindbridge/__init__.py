"""
MindBridge circles backend.

Circle membership ledger, circle content and direct messages.
"""
