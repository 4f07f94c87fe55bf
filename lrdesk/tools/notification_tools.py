"""
Notification Tools

SMS alerts to the sender and receiver of a consignment:
- Booking confirmation with a tracking link
- Status updates (in transit, delivered, cancelled)
- Delivery reminders for in-transit consignments

Sending is simulated: messages are logged, not handed to a gateway.
"""
from typing import Dict, Any, List
from datetime import datetime
import structlog

from lrdesk.config import settings
from lrdesk.errors import ExternalServiceFailure
from lrdesk.tools.filter_tools import get_field

logger = structlog.get_logger()

SMS_MAX_LENGTH = 160

SMS_TEMPLATES = {
    "BOOKING_SENDER": "Your shipment has been booked with LR number {lr_number}. Track at: {tracking_link}",
    "BOOKING_RECEIVER": "A shipment is on its way to you with LR number {lr_number}. Track at: {tracking_link}",
    "STATUS_IN_TRANSIT": "Your shipment with LR {lr_number} is now in transit from {from_branch} to {to_branch}.",
    "STATUS_DELIVERED": "Your shipment with LR {lr_number} has been delivered successfully.",
    "STATUS_CANCELLED": "Your shipment with LR {lr_number} has been cancelled.",
    "STATUS_OTHER": "Your shipment with LR {lr_number} status has been updated to {status}.",
    "DELIVERY_REMINDER": (
        "Your shipment with LR {lr_number} will be delivered soon. "
        "Please ensure someone is available to receive it."
    ),
}


def tracking_link(lr_number: str) -> str:
    return f"{settings.tracking_base_url.rstrip('/')}/{lr_number}"


def _template_data(booking: Any) -> Dict[str, Any]:
    lr_number = get_field(booking, "lr_number")
    return {
        "lr_number": lr_number,
        "status": get_field(booking, "status"),
        "from_branch": get_field(booking, "from_branch_details.name", ""),
        "to_branch": get_field(booking, "to_branch_details.name", ""),
        "tracking_link": tracking_link(lr_number),
    }


def _require_mobiles(booking: Any, *parties: str) -> List[str]:
    mobiles = [get_field(booking, f"{party}.mobile") for party in parties]
    if not all(mobiles):
        raise ExternalServiceFailure(
            f"{' or '.join(p.capitalize() for p in parties)} mobile number is missing",
            lr_number=get_field(booking, "lr_number"),
        )
    return mobiles


async def send_sms(phone_number: str, message: str) -> Dict[str, Any]:
    """
    Send one SMS.

    Args:
        phone_number: Recipient mobile number
        message: Text, truncated to a single SMS segment

    Returns:
        Delivery status
    """
    if len(message) > SMS_MAX_LENGTH:
        message = message[:SMS_MAX_LENGTH - 3] + "..."

    if not settings.sms_enabled:
        logger.debug("SMS disabled, skipping", recipient=phone_number)
        return {"channel": "SMS", "status": "SKIPPED", "recipient": phone_number}

    logger.info(
        "Sending SMS notification",
        recipient=phone_number,
        sender_id=settings.sms_sender_id,
        message=message,
    )

    return {
        "channel": "SMS",
        "status": "SENT",
        "recipient": phone_number,
        "message_id": f"sms-{datetime.utcnow().strftime('%Y%m%d%H%M%S')}-{hash(phone_number) % 10000}",
        "sent_at": datetime.utcnow().isoformat(),
        "message_length": len(message),
    }


async def send_booking_sms(booking: Any) -> List[Dict[str, Any]]:
    """
    Confirm a new booking to both parties.

    Raises:
        ExternalServiceFailure: if the sender or receiver has no mobile number
    """
    sender_mobile, receiver_mobile = _require_mobiles(booking, "sender", "receiver")
    data = _template_data(booking)

    results = [
        await send_sms(sender_mobile, SMS_TEMPLATES["BOOKING_SENDER"].format(**data)),
        await send_sms(receiver_mobile, SMS_TEMPLATES["BOOKING_RECEIVER"].format(**data)),
    ]
    logger.info("Booking SMS sent", lr_number=data["lr_number"])
    return results


async def send_status_update_sms(booking: Any) -> List[Dict[str, Any]]:
    """
    Tell both parties about the booking's current status.

    Raises:
        ExternalServiceFailure: if the sender or receiver has no mobile number
    """
    mobiles = _require_mobiles(booking, "sender", "receiver")
    data = _template_data(booking)
    template = SMS_TEMPLATES.get(f"STATUS_{str(data['status']).upper()}", SMS_TEMPLATES["STATUS_OTHER"])
    message = template.format(**data)

    results = [await send_sms(mobile, message) for mobile in mobiles]
    logger.info("Status update SMS sent", lr_number=data["lr_number"], status=data["status"])
    return results


async def send_delivery_reminder_sms(booking: Any) -> Dict[str, Any]:
    """
    Remind the receiver that an in-transit consignment is arriving.

    Raises:
        ExternalServiceFailure: if the receiver has no mobile number or the
            booking is not in transit
    """
    (receiver_mobile,) = _require_mobiles(booking, "receiver")
    if get_field(booking, "status") != "in_transit":
        raise ExternalServiceFailure(
            "Booking is not in transit",
            lr_number=get_field(booking, "lr_number"),
        )
    return await send_sms(receiver_mobile, SMS_TEMPLATES["DELIVERY_REMINDER"].format(**_template_data(booking)))


async def notify_quietly(send, booking: Any) -> bool:
    """
    Run an SMS sender after a committed change, logging any failure.

    Returns:
        True if the messages went out
    """
    try:
        await send(booking)
        return True
    except Exception as e:
        logger.warning(
            "SMS notification failed",
            lr_number=get_field(booking, "lr_number"),
            notification=getattr(send, "__name__", str(send)),
            error=str(e),
        )
        return False
