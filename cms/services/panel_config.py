"""Panel configuration stored in the key-value storage."""
from __future__ import annotations

import logging

from cms.domain.validation import validate_partner_form_url
from cms.repositories.local_storage import LocalStorage

logger = logging.getLogger(__name__)


class PanelConfigService:
    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    def partner_form_url(self) -> str:
        return self.storage.partner_form_url()

    def save_partner_form_url(self, value: str | None) -> str:
        url = validate_partner_form_url(value)
        self.storage.set_partner_form_url(url)
        logger.info("Partner form URL updated")
        return url
