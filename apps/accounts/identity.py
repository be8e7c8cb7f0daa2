"""
Session/identity gate.

The session cookie only carries two keys, ``user_type`` and ``actor_id``.
``IdentitySessionAuthentication`` turns them into an ``Identity`` that DRF
places on ``request.user``; views hand that object (or its fields) to the
services, which never look at the session themselves.
"""
import logging
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from rest_framework.authentication import SessionAuthentication

from .models import StaffRole, User, UserType

logger = logging.getLogger(__name__)

SESSION_USER_TYPE_KEY = 'user_type'
SESSION_ACTOR_ID_KEY = 'actor_id'

STAFF_TYPES = frozenset({UserType.OWNER, UserType.ADMIN, UserType.REPAIR_STAFF})
PRIVILEGED_TYPES = frozenset({UserType.OWNER, UserType.ADMIN})


@dataclass(frozen=True)
class Identity:
    """Request-scoped caller identity resolved from the session."""

    user_type: str
    actor_id: str
    principal: object = field(default=None, compare=False, repr=False)

    # Lets DRF's IsAuthenticated treat an Identity like a logged-in user
    is_authenticated = True
    is_anonymous = False

    @property
    def is_member(self):
        return self.user_type == UserType.MEMBER

    @property
    def is_staff(self):
        return self.user_type in STAFF_TYPES

    @property
    def is_privileged(self):
        return self.user_type in PRIVILEGED_TYPES

    def can_access_member(self, member_id) -> bool:
        """Staff may act on any member, a member only on themself."""
        if self.is_staff:
            return True
        return self.is_member and str(member_id) == self.actor_id


def start_session(request, *, user_type: str, actor_id) -> None:
    """Bind a fresh session to the given actor."""
    session = request.session
    session.cycle_key()
    session[SESSION_USER_TYPE_KEY] = str(user_type)
    session[SESSION_ACTOR_ID_KEY] = str(actor_id)


def end_session(request) -> None:
    request.session.flush()


def _load_member(actor_id):
    from apps.members.models import Member

    try:
        return Member.objects.filter(pk=actor_id).first()
    except ValidationError:
        return None


def _load_staff(actor_id):
    try:
        return User.objects.filter(pk=actor_id, is_active=True).first()
    except ValidationError:
        return None


class IdentitySessionAuthentication(SessionAuthentication):
    """
    Resolve the session cookie into an ``Identity``.

    Returns ``None`` (anonymous) when the session holds no identity. A session
    pointing at a deleted member or a deactivated staff account is flushed.
    CSRF is enforced exactly as in DRF's ``SessionAuthentication``.
    """

    def authenticate(self, request):
        session = getattr(request._request, 'session', None)
        if session is None:
            return None

        user_type = session.get(SESSION_USER_TYPE_KEY)
        actor_id = session.get(SESSION_ACTOR_ID_KEY)
        if not user_type or not actor_id:
            return None

        if user_type == UserType.MEMBER:
            principal = _load_member(actor_id)
        elif user_type in STAFF_TYPES:
            principal = _load_staff(actor_id)
            if principal is not None:
                # Role changes take effect on the next request
                user_type = principal.role
        else:
            principal = None

        if principal is None:
            logger.info("Dropping stale %s session for %s", user_type, actor_id)
            session.flush()
            return None

        self.enforce_csrf(request)
        return (Identity(user_type=user_type, actor_id=str(principal.pk), principal=principal), None)

    def authenticate_header(self, request):
        # Any value makes DRF answer 401 instead of 403 for anonymous callers
        return 'Session'


def reporter_type_for(identity: Identity) -> str:
    """Map a session identity onto the reporter kind stored on reports."""
    if identity.user_type == UserType.MEMBER:
        return 'member'
    if identity.user_type == StaffRole.REPAIR_STAFF:
        return 'repair_staff'
    return 'user'
