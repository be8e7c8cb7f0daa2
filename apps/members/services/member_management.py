"""Member account management service."""

import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ..models import Member
from .exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    MemberNotFoundError,
)

logger = logging.getLogger(__name__)

# Fields members and staff may edit directly; balances and tier are ledger-owned
EDITABLE_FIELDS = ('name', 'email', 'phone', 'address', 'notes')


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def lock_member(member_id) -> Member:
    """
    Fetch a member with a row lock.

    Must be called inside a transaction; the lock is held until it ends.

    Raises:
        MemberNotFoundError: If the member does not exist
    """
    try:
        return Member.objects.select_for_update().get(pk=member_id)
    except (Member.DoesNotExist, ValidationError):
        raise MemberNotFoundError(f"Member {member_id} not found")


def get_member(*, member_id) -> Member:
    try:
        return Member.objects.get(pk=member_id)
    except (Member.DoesNotExist, ValidationError):
        raise MemberNotFoundError(f"Member {member_id} not found")


@transaction.atomic
def create_member(
    *,
    name: str,
    email: str,
    password: str = "",
    phone: str = "",
    address: str = "",
    notes: str = "",
) -> Member:
    """
    Create a member with empty balances in the bronze tier.

    Args:
        name: Display name
        email: Unique email (stored lower-cased)
        password: Raw password; an empty password leaves the account
            without a usable login

    Returns:
        Created Member instance

    Raises:
        DuplicateEmailError: If the email is already registered
    """
    email = _normalize_email(email)
    member = Member(name=name, email=email, phone=phone, address=address, notes=notes)
    if password:
        member.set_password(password)

    try:
        with transaction.atomic():
            member.save()
    except IntegrityError:
        raise DuplicateEmailError(f"Email {email} is already registered")

    logger.info("Created member %s (%s)", member.pk, email)
    return member


@transaction.atomic
def update_member(*, member_id, **changes) -> Member:
    """
    Update a member's profile fields.

    Only ``name``, ``email``, ``phone``, ``address`` and ``notes`` are
    accepted; anything else raises ``TypeError``.

    Raises:
        MemberNotFoundError: If the member does not exist
        DuplicateEmailError: If the new email belongs to another member
    """
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise TypeError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    member = lock_member(member_id)
    if 'email' in changes:
        changes['email'] = _normalize_email(changes['email'])

    for attr, value in changes.items():
        setattr(member, attr, value)

    try:
        with transaction.atomic():
            member.save(update_fields=[*changes, 'updated_at'])
    except IntegrityError:
        raise DuplicateEmailError(f"Email {changes['email']} is already registered")

    return member


@transaction.atomic
def delete_member(*, member_id) -> None:
    """Delete a member together with its ledgers and carts."""
    member = lock_member(member_id)
    member.delete()
    logger.info("Deleted member %s", member_id)


def authenticate_member(*, email: str, password: str) -> Member:
    """
    Check a member's email and password.

    Raises:
        InvalidCredentialsError: If the email is unknown or the password wrong
    """
    member = Member.objects.filter(email=_normalize_email(email)).first()
    if member is None or not member.check_password(password):
        logger.warning("Failed member login for %s", email)
        raise InvalidCredentialsError("Invalid email or password")
    return member
