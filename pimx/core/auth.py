"""
Passcode gate
Single static passcode guarding the dashboard; not a user or permission system
"""

import hmac

from pimx.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PASSCODE = "PIMX963"


class AuthenticationError(Exception):
    """Raised when the entered passcode does not match"""


class PasscodeGate:
    """Unlocks the session when the configured passcode is entered"""

    def __init__(self, passcode: str = DEFAULT_PASSCODE):
        self._passcode = passcode
        self._unlocked = False

    @property
    def is_unlocked(self) -> bool:
        return self._unlocked

    def verify(self, attempt: str) -> None:
        """Compare an attempt with the passcode

        Raises:
            AuthenticationError: Passcode mismatch
        """
        if not hmac.compare_digest(attempt.encode(), self._passcode.encode()):
            logger.warning("Rejected passcode attempt")
            raise AuthenticationError("Incorrect passcode")

    def unlock(self, attempt: str) -> None:
        self.verify(attempt)
        self._unlocked = True
        logger.info("Session unlocked")

    def lock(self) -> None:
        self._unlocked = False
