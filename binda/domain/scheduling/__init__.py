"""
Scheduling domain - slot availability and slot locks.

Availability is computed per staff member from the weekly schedule (tenant-local
wall-clock time) minus everything that blocks the staff member's time: appointments
that are not cancelled, time off, and unexpired slot locks held by other booking
sessions. A slot lock reserves an interval for a short TTL while a customer finishes
the booking flow; booking consumes it in the same transaction that inserts the
appointment.
"""
