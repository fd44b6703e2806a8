"""
Identity.

Components:
- user_models.py: User, UserPreferences
- identity.py: local sign-up / sign-in / session provider
"""
