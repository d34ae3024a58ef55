"""
Scripts package for the Piano Venues API
"""
