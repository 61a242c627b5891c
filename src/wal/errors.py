"""Error taxonomy for wallet, identity, and credential operations.

Every failure raised by the lifecycle core, the stores, and the collaborator
adapters belongs to one of four families:

- :class:`NotFoundError`        — a wallet, identity, key, or credential is absent
  (or already in its terminal revoked state)
- :class:`DuplicateError`       — a name, alias, or key id collides
- :class:`InvalidError`         — a malformed identity reference, file, or
  mnemonic, or an operation the entity's state forbids
- :class:`ExternalFailureError` — a ledger, signer, verifier, or encryption
  call failed

The command surface catches :class:`WalError` and prints the message; nothing
in this package retries automatically.
"""
from __future__ import annotations


class WalError(Exception):
    """Base exception for all wallet errors."""


# ------------------------------------------------------------------
# NotFound
# ------------------------------------------------------------------


class NotFoundError(WalError):
    """Raised when a referenced entity does not exist."""


class WalletNotFoundError(NotFoundError):
    """Raised when no wallet is stored under the given name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Wallet {name!r} not found.")
        self.name = name


class IdentityNotFoundError(NotFoundError):
    """Raised when a wallet has no identity with the given alias."""

    def __init__(self, wallet_name: str, alias: str) -> None:
        super().__init__(f"DID alias {alias!r} not found in wallet {wallet_name!r}.")
        self.alias = alias


class KeyNotFoundError(NotFoundError):
    """Raised when an identity has no key with the given id."""

    def __init__(self, alias: str, key_id: str) -> None:
        super().__init__(f"Key {key_id!r} not found on DID {alias!r}.")
        self.key_id = key_id


class KeyAlreadyRevokedError(NotFoundError):
    """Raised when revoking a key that is already revoked."""

    def __init__(self, alias: str, key_id: str) -> None:
        super().__init__(f"Key {key_id!r} on DID {alias!r} is already revoked.")
        self.key_id = key_id


class CredentialNotFoundError(NotFoundError):
    """Raised when a wallet has no credential with the given alias."""

    def __init__(self, wallet_name: str, alias: str, source: str = "issued") -> None:
        super().__init__(
            f"No {source} credential aliased {alias!r} in wallet {wallet_name!r}."
        )
        self.alias = alias


class CredentialAlreadyRevokedError(NotFoundError):
    """Raised when revoking an issued credential that is already revoked."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"Credential {alias!r} is already revoked.")
        self.alias = alias


# ------------------------------------------------------------------
# Duplicate
# ------------------------------------------------------------------


class DuplicateError(WalError):
    """Raised when a name, alias, or id is already taken."""


class WalletAlreadyExistsError(DuplicateError):
    """Raised when creating or importing a wallet under a taken name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Duplicated wallet name {name!r}.")
        self.name = name


class DuplicateIdentityAliasError(DuplicateError):
    """Raised when an identity alias is already used in the wallet."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"Duplicated DID alias {alias!r}.")
        self.alias = alias


class DuplicateKeyIdError(DuplicateError):
    """Raised when a key id is already used on the identity."""

    def __init__(self, alias: str, key_id: str) -> None:
        super().__init__(f"Duplicated key id {key_id!r} on DID {alias!r}.")
        self.key_id = key_id


class DuplicateCredentialAliasError(DuplicateError):
    """Raised when a credential alias is already used in its namespace."""

    def __init__(self, alias: str, source: str = "issued") -> None:
        super().__init__(f"Duplicated {source} credential alias {alias!r}.")
        self.alias = alias


# ------------------------------------------------------------------
# Invalid
# ------------------------------------------------------------------


class InvalidError(WalError):
    """Raised when input or entity state makes an operation impossible."""


class InvalidIdentityUriError(InvalidError):
    """Raised when a string is not a well-formed identity reference."""

    def __init__(self, uri: str, reason: str = "") -> None:
        message = f"Invalid DID {uri!r}."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.uri = uri


class InvalidFileError(InvalidError):
    """Raised when an export/import file cannot be read or parsed."""


class InvalidMnemonicError(InvalidError):
    """Raised when a supplied recovery phrase fails validation."""


class IdentityAlreadyPublishedError(InvalidError):
    """Raised when publishing an identity that is already published."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"DID {alias!r} is already published.")
        self.alias = alias


class KeyPurposeNotAllowedError(InvalidError):
    """Raised when adding an issuing or revocation key to a non-issuer DID."""

    def __init__(self, alias: str, purpose: str) -> None:
        super().__init__(
            f"DID {alias!r} was not created as an issuer and cannot hold {purpose} keys."
        )
        self.alias = alias
        self.purpose = purpose


class MissingKeyError(InvalidError):
    """Raised when an identity has no active key of the required purpose."""

    def __init__(self, alias: str, purpose: str) -> None:
        super().__init__(f"DID {alias!r} has no active {purpose} key.")
        self.alias = alias
        self.purpose = purpose


# ------------------------------------------------------------------
# ExternalFailure
# ------------------------------------------------------------------


class ExternalFailureError(WalError):
    """Raised when a collaborator (ledger, signer, verifier, encryption) fails."""


__all__ = [
    "CredentialAlreadyRevokedError",
    "CredentialNotFoundError",
    "DuplicateCredentialAliasError",
    "DuplicateError",
    "DuplicateIdentityAliasError",
    "DuplicateKeyIdError",
    "ExternalFailureError",
    "IdentityAlreadyPublishedError",
    "IdentityNotFoundError",
    "InvalidError",
    "InvalidFileError",
    "InvalidIdentityUriError",
    "InvalidMnemonicError",
    "KeyAlreadyRevokedError",
    "KeyNotFoundError",
    "KeyPurposeNotAllowedError",
    "MissingKeyError",
    "NotFoundError",
    "WalError",
    "WalletAlreadyExistsError",
    "WalletNotFoundError",
]
