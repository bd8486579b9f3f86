"""Returns bounded context: Orders and their Replacement Requests.

Owns the authoritative Order aggregate, the embedded replacement request
state machine and its append-only history. Uses CQRS (not event sourcing):
the aggregate is the source of truth and every accepted transition appends
one history entry.
"""

import structlog
from protean.domain import Domain

returns = Domain(name="returns")

logger = structlog.get_logger(__name__)
