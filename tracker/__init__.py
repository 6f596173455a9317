"""
Daily split workout tracker: data contracts, persistence and configuration
"""
