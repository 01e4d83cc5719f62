from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from ..errors import MalformedId, MissingId, NotAuthenticated, ProvisionalId
from .models import ActorIdentity

PROVISIONAL_ID_PREFIX = "temp-"

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

logger = logging.getLogger(__name__)


class IdentityValidator:
    """
    Gatekeeper run before every create/update.

    An actor passes only when it carries a canonical UUID that was issued by
    the server; provisional ids minted client-side would break the owner
    foreign key on insert.
    """

    def __init__(self, *, provisional_prefix: str = PROVISIONAL_ID_PREFIX):
        self._provisional_prefix = provisional_prefix

    def validate(self, actor: ActorIdentity | Mapping[str, Any] | None) -> ActorIdentity:
        if actor is None:
            logger.warning("Write rejected: no authenticated actor")
            raise NotAuthenticated()
        identity = _coerce(actor)
        actor_id = identity.id
        if not actor_id:
            logger.warning("Write rejected: actor has no id")
            raise MissingId()
        if actor_id.startswith(self._provisional_prefix):
            logger.warning("Write rejected: provisional actor id %s", actor_id)
            raise ProvisionalId(actor_id)
        if not _UUID_RE.match(actor_id):
            logger.warning("Write rejected: malformed actor id %s", actor_id)
            raise MalformedId(actor_id)
        return ActorIdentity(
            id=actor_id.lower(),
            email=identity.email,
            name=identity.name or identity.email,
        )

    def is_valid(self, actor: ActorIdentity | Mapping[str, Any] | None) -> bool:
        try:
            self.validate(actor)
        except (NotAuthenticated, MissingId, ProvisionalId, MalformedId):
            return False
        return True


def _coerce(actor: ActorIdentity | Mapping[str, Any]) -> ActorIdentity:
    if isinstance(actor, ActorIdentity):
        raw_id, email, name = actor.id, actor.email, actor.name
    else:
        raw_id = actor.get("id")
        email = actor.get("email")
        name = actor.get("name") or actor.get("nome")
    return ActorIdentity(
        id=str(raw_id).strip() if raw_id is not None else "",
        email=str(email or "").strip(),
        name=str(name or "").strip(),
    )
