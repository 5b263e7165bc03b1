"""Tracking bounded context — Order Status Lifecycle and Delivery Tracking.

Follows an order from checkout to the customer's door: every status change is
validated against a fixed state machine and recorded as a timeline event in the
same aggregate write. Uses CQRS because customers only ever read projections
(lookup by tracking code, search by email) while admins and carrier feeds
write a small number of transitions.
"""

from protean.domain import Domain

tracking = Domain(name="tracking")
