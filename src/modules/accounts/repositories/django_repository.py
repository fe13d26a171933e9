"""Django ORM implementation of the Account repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from modules.accounts.repositories.interfaces import IAccountRepository

logger = structlog.get_logger(__name__)


class AccountDjangoRepository(IAccountRepository):
    """Concrete Account repository backed by the configured user model."""

    def __init__(self) -> None:
        self._model = get_user_model()

    def get_by_id(self, id: str):
        try:
            return self._model.objects.filter(pk=id).first()
        except (TypeError, ValueError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Any]:
        queryset = self._model.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def email_taken(self, email: str, exclude_id: Optional[Any] = None) -> bool:
        queryset = self._model.objects.filter(
            Q(email__iexact=email) | Q(username__iexact=email)
        )
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    @transaction.atomic
    def create(self, email: str, password: str, **fields: Any):
        user = self._model.objects.create_user(
            username=email, email=email, password=password, **fields
        )
        logger.info("account.saved", user_id=user.pk, is_new=True)
        return user

    @transaction.atomic
    def save(self, entity):
        entity.save()
        logger.info("account.saved", user_id=entity.pk, is_new=False)
        return entity
