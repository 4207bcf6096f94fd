import logging

from bson import Decimal128
from django.conf import settings
from django.core.mail import EmailMessage

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = 'Thank you for your reservation!'

CONFIRMATION_BODY = """{name},

We have received your reservation with the following details.

Guest information:
- Name: {name}
- Email: {email}
- Phone: {phone}
- Address: {address}
- Postal code: {postal_code}

Reservation details:
- Room type: {room_type}
- Check-in: {check_in}
- Check-out: {check_out}
- Nights: {nights}
- Guests: {guests}
- Total: {total}

Reservation number: {reservation_id}

If you have any questions, please feel free to contact us.
"""


def total_price(reservation):
    """Nightly per-guest price of the booked room times nights times guests."""
    price = reservation['roomDetails']['price']
    if isinstance(price, Decimal128):
        price = price.to_decimal()
    return price * reservation['nights'] * reservation['guests']


def format_yen(amount):
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return '¥{:,}'.format(amount)


def _format_date(value):
    return value.strftime('%Y/%m/%d')


def build_confirmation(reservation):
    body = CONFIRMATION_BODY.format(
        name=reservation['name'],
        email=reservation['email'],
        phone=reservation['phone'],
        address=reservation['address'],
        postal_code=reservation['postalCode'],
        room_type=reservation['roomType'],
        check_in=_format_date(reservation['checkIn']),
        check_out=_format_date(reservation['checkOut']),
        nights=reservation['nights'],
        guests=reservation['guests'],
        total=format_yen(total_price(reservation)),
        reservation_id=reservation['_id'],
    )
    return EmailMessage(
        subject=CONFIRMATION_SUBJECT,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[reservation['email']],
    )


def send_confirmation(reservation):
    """
    Send the booking confirmation to the guest.

    Returns True when the backend accepted the message. Transport errors are
    logged and reported as False; they never reach the caller.
    """
    try:
        message = build_confirmation(reservation)
        message.send(fail_silently=False)
    except Exception:
        logger.exception('Error sending confirmation email to %s', reservation.get('email'))
        return False
    logger.info('Confirmation email sent to %s', reservation['email'])
    return True
