from decimal import ROUND_HALF_UP, Decimal

import requests
from flask import current_app

import const
from breeze.lib.logger import log_payment_message


def to_minor_units(amount):
    """Whole naira -> kobo, as Paystack expects."""
    return int(
        (Decimal(str(amount)) * const.MINOR_UNITS_PER_UNIT).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )


class PaystackClient:

    @staticmethod
    def _headers():
        secret_key = current_app.config.get("PAYSTACK_SECRET_KEY")
        return {
            "Authorization": f"Bearer {secret_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _url(path):
        base_url = current_app.config.get("PAYSTACK_BASE_URL", "https://api.paystack.co")
        return f"{base_url.rstrip('/')}/{path.lstrip('/')}"

    @staticmethod
    def initialize(email, amount, reference, callback_url, metadata=None):
        """Returns (body, status_code). ``amount`` is in whole currency units."""
        payload = {
            "email": email,
            "amount": to_minor_units(amount),
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata or {},
        }
        try:
            res = requests.post(
                PaystackClient._url("/transaction/initialize"),
                json=payload,
                headers=PaystackClient._headers(),
                timeout=current_app.config.get("HTTP_TIMEOUT", 10),
            )
            return res.json(), res.status_code
        except requests.RequestException as e:
            log_payment_message(f"Paystack initialize failed: {e}", level="ERROR")
            return {"status": False, "message": f"Paystack connection error: {str(e)}"}, 500
        except ValueError:
            return {"status": False, "message": "Paystack returned an invalid response"}, 502

    @staticmethod
    def verify(reference):
        try:
            res = requests.get(
                PaystackClient._url(f"/transaction/verify/{reference}"),
                headers=PaystackClient._headers(),
                timeout=current_app.config.get("HTTP_TIMEOUT", 10),
            )
            return res.json(), res.status_code
        except requests.RequestException as e:
            log_payment_message(f"Paystack verify failed: {e}", level="ERROR")
            return {"status": False, "message": f"Paystack connection error: {str(e)}"}, 500
        except ValueError:
            return {"status": False, "message": "Paystack returned an invalid response"}, 502
