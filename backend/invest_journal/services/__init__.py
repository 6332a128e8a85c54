"""
Services package - journal metrics, persistence adapters and market data clients.
"""
