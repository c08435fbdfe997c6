"""
Authentication application.

Provides the marketplace user model. Every user holds exactly one role
(buyer, seller or admin); sellers also carry the commission rate the
platform deducts from their payouts.

Usage:
    from authentication.models import User, UserRole
"""
