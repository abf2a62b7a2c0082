"""QuickBooks Online session.

Token acquisition and renewal happen outside this process (an OAuth
service issues the bearer token). QBOSession holds the issued token and
answers two questions for the HTTP client: is the session valid, and what
Authorization header to send.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional


@dataclass
class QBOSession:
    """Externally issued QuickBooks Online access token.

    Attributes:
        access_token: OAuth2 bearer token
        realm_id: QuickBooks company ID the token is scoped to
        expires_at: When the token expires (None = no known expiry)
        token_type: Authorization scheme
    """
    access_token: Optional[str]
    realm_id: Optional[str]
    expires_at: Optional[datetime] = None
    token_type: str = "Bearer"

    # Treat tokens as expired slightly early so in-flight calls don't race expiry
    expiry_buffer: timedelta = timedelta(minutes=5)

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) >= (expires_at - self.expiry_buffer)

    @property
    def is_valid(self) -> bool:
        """True when a realm and a non-expired token are present."""
        return bool(self.access_token and self.realm_id) and not self.is_expired

    @property
    def authorization_header(self) -> Optional[str]:
        if not self.is_valid:
            return None
        return f"{self.token_type} {self.access_token}"

    def update_token(self, access_token: str, expires_at: Optional[datetime] = None) -> None:
        """Install a token renewed by the external auth service."""
        self.access_token = access_token
        self.expires_at = expires_at

    async def ensure_valid_token(self) -> bool:
        """Whether requests can be made; this session never renews itself."""
        return self.is_valid
