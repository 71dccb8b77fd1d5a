import re
import secrets

import structlog

from movecar.core.core import Service
from movecar.errors import AccessDeniedError

logger = structlog.get_logger(__name__)

_SEPARATORS_RE = re.compile(r"[\s.\-·•_]+")


def normalize_plate(value: str) -> str:
    """Uppercase and drop the separators people type between plate characters."""
    return _SEPARATORS_RE.sub("", value).upper()


class PlateService(Service):
    """Optional gate on notify: the caller proves they are looking at the car.

    The proof is either the whole configured plate or its trailing characters.
    """

    @property
    def enabled(self) -> bool:
        return bool(self.core.config.plate_number)

    def matches(self, proof: str | None) -> bool:
        plate = self.core.config.plate_number
        if not plate:
            return True
        if not proof:
            return False
        expected = normalize_plate(plate)
        suffix = expected[-self.core.config.plate_proof_length :]
        given = normalize_plate(proof).encode()
        return secrets.compare_digest(given, expected.encode()) or secrets.compare_digest(given, suffix.encode())

    def ensure_plate(self, proof: str | None) -> None:
        if not self.matches(proof):
            logger.info("plate_proof_rejected")
            raise AccessDeniedError("Plate number does not match")
