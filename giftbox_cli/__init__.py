"""
Command line interface for the GiftBox SDK.
"""
