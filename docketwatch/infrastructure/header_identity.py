"""Header Identity — IdentityProvider trusting headers set by the authenticating proxy.

Invariants:
    - Both headers required and non-blank; otherwise the caller is anonymous (None)
    - Values are stripped and length-bounded; nothing else is interpreted here

Design Decisions:
    - Authentication policy lives in the proxy in front of this service; this adapter only
      reads its verdict. Swap in another IdentityProvider for session-cookie auth.
"""

from collections.abc import Mapping

from docketwatch.core.domain_types import CallerIdentity, RecipientId, TenantId

_MAX_ID_LENGTH = 64


class HeaderIdentityProvider:
    def __init__(
        self, recipient_header: str = "X-Recipient-Id", tenant_header: str = "X-Tenant-Id",
    ):
        self.recipient_header = recipient_header
        self.tenant_header = tenant_header

    async def resolve(self, headers: Mapping[str, str]) -> CallerIdentity | None:
        recipient = (headers.get(self.recipient_header) or "").strip()
        tenant = (headers.get(self.tenant_header) or "").strip()
        if not recipient or not tenant:
            return None
        if len(recipient) > _MAX_ID_LENGTH or len(tenant) > _MAX_ID_LENGTH:
            return None
        return CallerIdentity(recipient_id=RecipientId(recipient), tenant_id=TenantId(tenant))
