"""Internal staff notes — command and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from tracking.domain import tracking
from tracking.order.order import Order


@tracking.command(part_of="Order")
class AddInternalNote:
    order_number = Identifier(required=True)
    note = String(required=True, max_length=500)
    added_by = String(required=True, max_length=100)
    is_private = Boolean(default=True)


@tracking.command_handler(part_of=Order)
class AddInternalNoteHandler:
    @handle(AddInternalNote)
    def add_internal_note(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_number)
        note = order.add_internal_note(command.note, command.added_by, is_private=command.is_private)
        repo.add(order)
        return str(note.id)
