from models.user import User, VerificationToken, CreateUserData, CreateVerificationTokenData
from models.catalog import Category, Product

__all__ = [
    "User", "VerificationToken", "CreateUserData", "CreateVerificationTokenData",
    "Category", "Product",
]
