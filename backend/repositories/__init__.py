from repositories import users, tokens, catalog

__all__ = ["users", "tokens", "catalog"]
