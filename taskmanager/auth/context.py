"""
Request-scoped identity propagation.

A RequestScope is created for every inbound request and is immutable.
Authentication does not modify it: attach_identity() returns a derived
scope carrying the resolved Identity, and the base scope stays
identity-free. Handlers read the identity back with get_identity(), which
refuses to hand out an identity that was never attached.
"""

import dataclasses
import uuid
from dataclasses import dataclass

from taskmanager.auth.identity import Identity
from taskmanager.exceptions import Unauthenticated


@dataclass(frozen=True)
class RequestScope:
    request_id: str
    identity: Identity | None = None


def new_request_scope(request_id: str | None = None) -> RequestScope:
    return RequestScope(request_id=request_id or uuid.uuid4().hex)


def attach_identity(scope: RequestScope, identity: Identity) -> RequestScope:
    """Return a copy of `scope` carrying `identity`; `scope` itself is unchanged."""
    return dataclasses.replace(scope, identity=identity)


def get_identity(scope: RequestScope) -> Identity:
    """
    Retrieve the identity attached upstream.

    Raises:
        Unauthenticated: No identity was attached (the request skipped
            authentication).
    """
    if scope.identity is None:
        raise Unauthenticated()
    return scope.identity
