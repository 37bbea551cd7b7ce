"""
HTTP API, catalog client and service layer for the movie collection
"""
