#!/usr/bin/env python3
"""
Local booking walk-through (no HTTP, no external providers).

Usage:
  ENV=dev python3 scripts/book_local.py [--consultation] [--pay-now]

What it does:
- Builds the wizard through the project wiring (in-memory adapters under ENV=dev)
- Drives one booking from service selection to confirmation
- Prints the step, progress and final commit result after each move
"""

from __future__ import annotations

import argparse
from datetime import date, time, timedelta

from dotenv import load_dotenv

load_dotenv()

from massage_booking.domain.entities.booking_draft import BookingSession, ClientInfo, TimeSlot  # noqa: E402
from massage_booking.wiring.dependencies import (  # noqa: E402
    get_booking_wizard,
    get_intake_form_use_case,
    get_payment_step_use_case,
)


def _print_step(label: str, session: BookingSession) -> None:
    wizard = get_booking_wizard()
    step_progress = wizard.progress(session.session_id)
    print(
        f"{label:<18} step={session.current_step.title:<18} "
        f"{step_progress.current}/{step_progress.total} ({step_progress.percent}%)"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Drive one booking through the wizard locally.")
    parser.add_argument("--consultation", action="store_true", help="book the free video consultation")
    parser.add_argument("--pay-now", action="store_true", help="pay online instead of at the appointment")
    args = parser.parse_args()

    wizard = get_booking_wizard()
    intake = get_intake_form_use_case()
    payments = get_payment_step_use_case()

    service_id = "svc-free-consultation" if args.consultation else "svc-swedish-60"
    session = wizard.start(service_id=service_id)
    sid = session.session_id
    _print_step("start", session)

    session = wizard.next(sid)
    if args.consultation:
        wizard.update(sid, consultation_type="video")
        session = wizard.next(sid)
    _print_step("service chosen", session)

    start = time(10, 0)
    end = time(10, 30) if args.consultation else time(11, 0)
    wizard.update(sid, date=date.today() + timedelta(days=7), time_slot=TimeSlot(start=start, end=end))
    session = wizard.next(sid)
    _print_step("slot chosen", session)

    wizard.update(
        sid,
        client_info=ClientInfo(first_name="Local", last_name="Tester", email="local@example.com", phone="5550100000"),
    )
    session = wizard.next(sid)
    intake.prepare(sid)
    session = wizard.next(sid)
    _print_step("intake done", session)

    if not args.consultation:
        wizard.update(sid, payment_preference="pay_now" if args.pay_now else "pay_at_appointment")
        session = wizard.next(sid)
        if args.pay_now:
            intent = payments.prepare(sid)
            payments.confirm(sid, intent.payment_intent_id)
            session = wizard.next(sid)
        _print_step("payment chosen", session)

    result = wizard.commit(sid)
    print("-" * 60)
    print(f"appointment_id:      {result.appointment_id}")
    print(f"confirmation_number: {result.confirmation_number}")
    if result.room_url:
        print(f"room_url:            {result.room_url}")
    for warning in result.warnings:
        print(f"warning:             {warning}")


if __name__ == "__main__":
    main()
