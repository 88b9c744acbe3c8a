"""
Parking service - spot and booking models.
"""
