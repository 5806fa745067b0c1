"""
Analytics backend for customer billing and trading-partner exports.
"""
