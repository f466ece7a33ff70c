"""Factory for User models."""

import factory
from src.database.models import User
from .base import AsyncSQLAlchemyModelFactory, UUIDFactory


class UserFactory(AsyncSQLAlchemyModelFactory[User]):
    """Factory for creating User instances."""

    class Meta:
        model = User

    id = UUIDFactory()
    auth_user_id = factory.Sequence(lambda n: f"user_test_{n:04d}")
    email = factory.Faker("email")
    credits_balance = 0
