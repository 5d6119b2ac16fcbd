"""
Writer identity and the authorization gate consulted before every write.
"""

from typing import Optional, Protocol

from .logging_config import get_logger

logger = get_logger(__name__)


class AuthorizationDeclined(Exception):
    """Raised when the identity layer refuses an action. The message is shown to the user as-is."""

    def __init__(self, message: str = 'Transaction rejected by user'):
        super().__init__(message)


class IdentityProvider(Protocol):
    """Source of the owner identity and of write authorization."""

    @property
    def owner(self) -> Optional[str]:
        ...

    async def authorize(self, action: str) -> None:
        ...


class StaticIdentity:
    """Identity with a fixed owner that approves or declines every action."""

    def __init__(self, owner: Optional[str], approve: bool = True, decline_message: str = 'Transaction rejected by user'):
        self._owner = owner or None
        self.approve = approve
        self.decline_message = decline_message

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    async def authorize(self, action: str) -> None:
        if not self.approve:
            logger.info(f'Authorization declined for {action}')
            raise AuthorizationDeclined(self.decline_message)
        logger.debug(f'Authorized {action} for {self._owner}')
