from core.imports import SchemaError, logging
from core.errors import ClientError
from models.purchaseModels import Purchase, PurchaseStatus

logger = logging.getLogger(__name__)

STATUS_TONES = {
    PurchaseStatus.COMPLETED: "success",
    PurchaseStatus.PENDING: "warning",
    PurchaseStatus.CANCELLED: "danger",
}


def status_tone(status):
    return STATUS_TONES.get(status, "neutral")


class PurchaseHistory:
    """Read-only list of the visitor's purchases, newest first as the backend sends them."""

    def __init__(self, client):
        self.client = client
        self.purchases = []

    def fetch(self):
        try:
            data = self.client.get("/purchases") or []
            self.purchases = [Purchase.model_validate(p) for p in data]
        except ClientError as e:
            logger.warning("Error fetching purchases: %s", e.message)
        except SchemaError as e:
            logger.warning("Malformed purchase list: %s", e)
        return self.purchases
