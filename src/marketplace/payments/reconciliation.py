"""Manual reconciliation queue.

A case is opened whenever money and goods disagree: a gateway payment was
captured for an order that can no longer be fulfilled, or a paid order was
cancelled and the buyer is owed a refund. Cases are worked by support staff
and resolved with a note.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace


class CaseKind(Enum):
    CAPTURED_UNALLOCATABLE = "captured_unallocatable"
    REFUND_DUE = "refund_due"


class CaseStatus(Enum):
    OPEN = "open"
    RESOLVED = "resolved"


@marketplace.aggregate
class ReconciliationCase:
    order_id = Identifier(required=True)
    kind = String(required=True, choices=CaseKind)
    status = String(choices=CaseStatus, default=CaseStatus.OPEN.value)
    amount = Float(required=True)
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)
    detail = Text()
    resolution = Text()
    opened_at = DateTime()
    resolved_at = DateTime()

    @classmethod
    def open(cls, order_id, kind, amount, gateway_order_id=None, gateway_payment_id=None, detail=None):
        return cls(
            order_id=order_id,
            kind=kind,
            amount=amount,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            detail=detail,
            status=CaseStatus.OPEN.value,
            opened_at=datetime.now(UTC),
        )

    def resolve(self, resolution):
        if self.status == CaseStatus.RESOLVED.value:
            raise ValidationError({"status": ["Case is already resolved"]})
        self.status = CaseStatus.RESOLVED.value
        self.resolution = resolution
        self.resolved_at = datetime.now(UTC)


@marketplace.repository(part_of=ReconciliationCase)
class ReconciliationCaseRepository:
    def find_open(self) -> list[ReconciliationCase]:
        return self._dao.query.filter(status=CaseStatus.OPEN.value).order_by("opened_at").all().items

    def find_for_order(self, order_id) -> list[ReconciliationCase]:
        return self._dao.query.filter(order_id=str(order_id)).all().items


@marketplace.command(part_of="ReconciliationCase")
class OpenReconciliationCase:
    order_id = Identifier(required=True)
    kind = String(required=True, choices=CaseKind)
    amount = Float(required=True)
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)
    detail = Text()


@marketplace.command(part_of="ReconciliationCase")
class ResolveReconciliationCase:
    case_id = Identifier(required=True)
    resolution = Text(required=True)


@marketplace.command_handler(part_of=ReconciliationCase)
class ReconciliationHandler:
    @handle(OpenReconciliationCase)
    def open_case(self, command):
        repo = current_domain.repository_for(ReconciliationCase)
        # Replayed callbacks must not open the same case twice
        for case in repo.find_for_order(command.order_id):
            if (
                case.kind == command.kind
                and case.status == CaseStatus.OPEN.value
                and case.gateway_payment_id == command.gateway_payment_id
            ):
                return str(case.id)

        case = ReconciliationCase.open(
            order_id=command.order_id,
            kind=command.kind,
            amount=command.amount,
            gateway_order_id=command.gateway_order_id,
            gateway_payment_id=command.gateway_payment_id,
            detail=command.detail,
        )
        repo.add(case)
        return str(case.id)

    @handle(ResolveReconciliationCase)
    def resolve_case(self, command):
        repo = current_domain.repository_for(ReconciliationCase)
        case = repo.get(command.case_id)
        case.resolve(command.resolution)
        repo.add(case)
