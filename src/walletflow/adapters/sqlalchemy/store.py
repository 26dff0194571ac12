"""Credential store over the SQLAlchemy preference table."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from walletflow.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
from walletflow.domain.model import WalletIdentity
from walletflow.domain.ports.auth import CredentialStore

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

KEY_WALLET_GUID: Final[str] = "wallet_guid"
KEY_SHARED_KEY: Final[str] = "shared_key"
KEY_EMAIL_VERIFIED: Final[str] = "email_verified"
KEY_PIN_IDENTIFIER: Final[str] = "pin_identifier"


class SqlAlchemyCredentialStore:
    """Persist the decrypted wallet identity and wipe it after irrecoverable failures."""

    def __init__(
        self,
        unit_of_work_factory: Callable[[], SqlAlchemyUnitOfWork] = SqlAlchemyUnitOfWork,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory

    def persist_identity(self, identity: WalletIdentity) -> None:
        with self._unit_of_work_factory() as uow:
            uow.preferences.set(KEY_WALLET_GUID, identity.guid)
            uow.preferences.set(KEY_SHARED_KEY, identity.shared_key)
            uow.preferences.set(KEY_EMAIL_VERIFIED, "true")
            # A fresh login invalidates any previously created PIN.
            uow.preferences.remove([KEY_PIN_IDENTIFIER])
            uow.commit()
        log.info("Stored credentials for wallet %s", identity.guid)

    def clear_credentials(self) -> None:
        with self._unit_of_work_factory() as uow:
            uow.preferences.clear()
            uow.commit()
        log.warning("Cleared stored wallet credentials")

    def stored_identity(self) -> WalletIdentity | None:
        with self._unit_of_work_factory() as uow:
            guid = uow.preferences.get(KEY_WALLET_GUID)
            shared_key = uow.preferences.get(KEY_SHARED_KEY)
        if guid is None or shared_key is None:
            return None
        return WalletIdentity(guid=guid, shared_key=shared_key)


if TYPE_CHECKING:
    _store_check: CredentialStore = SqlAlchemyCredentialStore()
