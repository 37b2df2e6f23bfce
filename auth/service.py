"""
auth/service.py -- Register/login flows and account administration.

AuthService composes the validator, the store, the password hasher and the
token issuer. Both the HTTP routes (api/routes/v1/) and the operator CLI
(main.py) go through it, so every entry point applies the same policy.

Register:
  validate -> uniqueness pre-check -> hash + persist -> issue token.
  A validation failure raises ValidationError; a taken email raises
  EmailInUseError (from the pre-check, or from the UNIQUE constraint when a
  concurrent registration wins the race).

Login:
  lookup by normalized email -> verify password -> issue token.
  Unknown email and wrong password both raise the same InvalidCredentialsError
  and both spend one bcrypt verification, so neither the message nor the
  response time reveals which half failed.

Administrative create applies the same validation policy as self-registration
but issues no token.

Logging: account ids and event names only. Plaintext passwords, hashes and
tokens are never logged.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from auth.models import Account
from auth.passwords import DUMMY_HASH, hash_password, verify_password
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from auth.validation import normalize_email, validate_credentials, validate_email, validate_names
from core.errors import AccountNotFoundError, EmailInUseError, InvalidCredentialsError

logger = logging.getLogger("accountsvc.auth")


@dataclass
class AuthResult:
    """Outcome of a successful register or login."""

    message: str
    account: Account
    token: str


class AuthService:
    """Account workflows backed by an AccountStore and a TokenIssuer."""

    def __init__(self, store: AccountStore, issuer: TokenIssuer) -> None:
        self._store = store
        self._issuer = issuer

    # ------------------------------------------------------------------
    # Authentication flows
    # ------------------------------------------------------------------

    def register(self, first_name: str, last_name: str, email: str, password: str) -> AuthResult:
        account = self._create(first_name, last_name, email, password)
        token = self._issuer.issue(account)
        logger.info("Registered account %s", account.id)
        return AuthResult(message="Registration successful.", account=account, token=token)

    def login(self, email: str, password: str) -> AuthResult:
        account = self._store.get_by_email(normalize_email(email))
        if account is None:
            # Equalize timing -- do NOT return before running bcrypt.
            verify_password(password, DUMMY_HASH)
            logger.info("Login failed")
            raise InvalidCredentialsError()
        if not verify_password(password, account.hashed_password):
            logger.info("Login failed")
            raise InvalidCredentialsError()

        token = self._issuer.issue(account)
        logger.info("Login succeeded for account %s", account.id)
        return AuthResult(message="Login successful.", account=account, token=token)

    # ------------------------------------------------------------------
    # Account administration
    # ------------------------------------------------------------------

    def list_accounts(self) -> list[Account]:
        return self._store.list_accounts()

    def get_account(self, account_id: int) -> Account:
        account = self._store.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        return account

    def create_account(self, first_name: str, last_name: str, email: str, password: str) -> Account:
        """Administrative create: same policy as register, no token issued."""
        account = self._create(first_name, last_name, email, password)
        logger.info("Created account %s", account.id)
        return account

    def update_account(self, account_id: int, first_name: str, last_name: str, email: str) -> Account:
        """Replace an account's names and email.

        The account is looked up before any validation, so an unknown id is
        reported as AccountNotFoundError and the store is never written.
        """
        if self._store.get_by_id(account_id) is None:
            raise AccountNotFoundError()
        normalized = validate_email(email)
        first, last = validate_names(first_name, last_name)

        updated = self._store.update(account_id, first, last, normalized)
        if updated is None:
            # Deleted between the lookup and the write.
            raise AccountNotFoundError()
        logger.info("Updated account %s", account_id)
        return updated

    def delete_account(self, account_id: int) -> None:
        if not self._store.delete(account_id):
            raise AccountNotFoundError()
        logger.info("Deleted account %s", account_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _create(self, first_name: str, last_name: str, email: str, password: str) -> Account:
        normalized = validate_credentials(email, password)
        first, last = validate_names(first_name, last_name)
        if self._store.exists(normalized):
            raise EmailInUseError()
        return self._store.create(
            Account(
                first_name=first,
                last_name=last,
                email=normalized,
                hashed_password=hash_password(password),
            )
        )
