# backend/lesson_scheduling/repositories/scheduling_settings_repository.py
"""SchedulingSettingsRepository - one settings row per tenant."""

import logging
from typing import Any, Dict, Optional, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.scheduling_settings import SchedulingSettings
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SchedulingSettingsRepository(BaseRepository[SchedulingSettings]):
    def __init__(self, db: Session):
        super().__init__(db, SchedulingSettings)
        self.logger = logging.getLogger(__name__)

    def get_by_tenant(self, tenant_id: str) -> Optional[SchedulingSettings]:
        try:
            return cast(
                Optional[SchedulingSettings],
                self.db.query(SchedulingSettings)
                .filter(SchedulingSettings.tenant_id == tenant_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting scheduling settings: {str(e)}")
            raise RepositoryException(f"Failed to get scheduling settings: {str(e)}")

    def get_or_create(self, tenant_id: str, defaults: Dict[str, Any]) -> SchedulingSettings:
        """
        Return the tenant's settings row, inserting one with ``defaults`` if absent.

        A concurrent first read may insert the same tenant; the unique
        constraint rejects the loser, which then re-reads the winner's row.
        """
        existing = self.get_by_tenant(tenant_id)
        if existing is not None:
            return existing

        try:
            with self.db.begin_nested():
                row = SchedulingSettings(tenant_id=tenant_id, **defaults)
                self.db.add(row)
            self.logger.info(f"Created default scheduling settings for tenant {tenant_id}")
            return row
        except IntegrityError:
            self.logger.info(f"Scheduling settings for tenant {tenant_id} created concurrently")
            existing = self.get_by_tenant(tenant_id)
            if existing is None:
                raise RepositoryException("Failed to create scheduling settings")
            return existing
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating scheduling settings: {str(e)}")
            raise RepositoryException(f"Failed to create scheduling settings: {str(e)}")
