"""Authentication — credentials, tokens, and the access guard.

Learn: One authentication path only:
    email/password → bcrypt verify → JWT bearer token (30 days)

Every protected route depends on get_current_user, which turns the
bearer token back into a live identity.
"""
