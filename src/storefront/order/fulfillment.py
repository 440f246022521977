"""Order status workflow: commands and handler.

Administrators drive orders through fulfillment and record refunds. Which
transitions are legal is decided by the policy configured under
``[custom.order_workflow]``. Every change goes through the order ledger, so
it is re-applied to a fresh copy of the order when another writer wins.
"""

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import PersistenceFailure
from storefront.order.ledger.repository_adapter import RepositoryOrderLedger
from storefront.order.order import Order
from storefront.order.status import policy_from_config

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    note = String(max_length=500)
    tracking_number = String(max_length=100)
    courier_service = String(max_length=100)
    estimated_delivery_date = DateTime()


@storefront.command(part_of="Order")
class RefundOrder:
    order_id = Identifier(required=True)
    amount_minor = Integer(min_value=1)  # Defaults to the order total
    reason = String(max_length=500)


def _transition_policy():
    return policy_from_config(current_domain.config.get("custom", {}).get("order_workflow"))


def _ledger():
    checkout = current_domain.config.get("custom", {}).get("checkout") or {}
    return RepositoryOrderLedger(current_domain, conflict_attempts=int(checkout.get("write_conflict_attempts", 5)))


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_order_status(self, command):
        policy = _transition_policy()
        return _ledger().update(
            command.order_id,
            lambda order: order.advance(
                command.status,
                note=command.note or f"Order {command.status} by admin",
                tracking_number=command.tracking_number,
                courier_service=command.courier_service,
                estimated_delivery_date=command.estimated_delivery_date,
                policy=policy,
            ),
        )

    @handle(RefundOrder)
    def refund_order(self, command):
        policy = _transition_policy()
        return _ledger().update(
            command.order_id,
            lambda order: order.record_refund(
                amount_minor=command.amount_minor,
                reason=command.reason,
                policy=policy,
            ),
        )


def submit(command):
    """Process a status command synchronously and return the updated order.

    A write conflict that outlasts the handler's version retries, or a commit
    the provider refuses, is reported as ``PersistenceFailure``.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except (ExpectedVersionError, TransactionError) as exc:
        logger.warning("order.status_write_failed", order_id=str(command.order_id), error=str(exc))
        raise PersistenceFailure(
            f"Could not update order {command.order_id}: {exc}",
            order_id=str(command.order_id),
        ) from exc
