"""
Authentication service - session, roles and account endpoints.
"""
