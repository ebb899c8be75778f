"""Linking repository credentials to the service account that runs builds."""

from __future__ import annotations

from .resources import ObjectReference, ServiceAccount


def link_secret_if_absent(secret_name: str, service_account: ServiceAccount) -> bool:
    """
    Add `secret_name` to the service account's secrets unless already there.

    Only the passed-in object is touched; persisting it is up to the caller.
    Existing entries are never removed or reordered.

    Returns:
        True if the service account was modified and needs to be saved.
    """
    for credential_secret in service_account.secrets:
        if credential_secret.name == secret_name:
            return False

    service_account.secrets.append(ObjectReference(name=secret_name))
    return True
