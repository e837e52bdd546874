"""Utility script to create and dispatch a notification from the command line."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from bms.application.use_cases.notifications import NotificationService
from bms.domain.entities import NOTIFICATION_CHANNELS, NOTIFICATION_TYPES, NotificationInput
from bms.infrastructure.channels import build_channel_senders
from bms.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the test notification."""

    parser = argparse.ArgumentParser(
        description="Create a notification and send it through the configured channels.",
    )
    recipient = parser.add_mutually_exclusive_group()
    recipient.add_argument("--tenant-id", type=int, default=None, help="Tenant to notify")
    recipient.add_argument("--user-id", type=int, default=None, help="Staff user to notify")
    parser.add_argument(
        "--organization-id",
        default=None,
        help="Organization the notification belongs to",
    )
    parser.add_argument(
        "--type",
        default="system",
        choices=NOTIFICATION_TYPES,
        help="Notification type (default: system)",
    )
    parser.add_argument(
        "--channel",
        dest="channels",
        action="append",
        choices=NOTIFICATION_CHANNELS,
        help="Channel to use; repeat for several (default: in_app)",
    )
    parser.add_argument("--title", default="Test notification", help="Notification title")
    parser.add_argument(
        "--message",
        default="This is a test notification from the BMS notification service.",
        help="Notification body",
    )
    parser.add_argument(
        "--priority",
        default=None,
        help="Priority stored in the metadata (emergency or urgent bypass quiet hours)",
    )
    return parser.parse_args()


def main() -> None:
    """Create a notification using the provided command line arguments."""

    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        service = NotificationService(session, build_channel_senders())
        notification = service.create_notification(
            NotificationInput(
                organization_id=args.organization_id,
                tenant_id=args.tenant_id,
                user_id=args.user_id,
                type=args.type,
                title=args.title,
                message=args.message,
                channels=args.channels or ["in_app"],
                metadata={"priority": args.priority} if args.priority else None,
            )
        )
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"Could not create the notification: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Error saving the notification: {exc}") from exc
    else:
        print(f"Notification created:\n  ID: {notification.id}")
        if notification.suppressed_reason:
            print(f"  Suppressed: {notification.suppressed_reason}")
        for channel, state in notification.delivery_status.items():
            print(f"  {channel}: {state}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
