"""
Payment Gateway: UddoktaPay adapter.
Translates provider responses into the internal vocabulary:
    PENDING | COMPLETED | FAILED
"""

import logging

import requests

logger = logging.getLogger(__name__)

API_KEY_HEADER = "RT-UDDOKTAPAY-API-KEY"

STATUS_MAP = {
    "COMPLETED": "COMPLETED",
    "ERROR": "FAILED",
    "PENDING": "PENDING",
}


class UddoktaPayGateway:
    name = "uddoktapay"

    def __init__(self, api_key, base_url, app_base_url, webhook_url=None, timeout=10.0, session=None):
        self.api_key = api_key
        self.base_url = (base_url or "https://sandbox.uddoktapay.com").rstrip("/")
        self.app_base_url = app_base_url.rstrip("/")
        self.webhook_url = webhook_url or f"{self.app_base_url}/api/payments/webhook/uddoktapay"
        self.timeout = timeout
        self.http = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        """Build the gateway from app config; None when no API key is set."""
        if not config.get("UDDOKTAPAY_API_KEY"):
            return None
        return cls(
            api_key=config["UDDOKTAPAY_API_KEY"],
            base_url=config.get("UDDOKTAPAY_BASE_URL"),
            app_base_url=config.get("APP_BASE_URL", "http://localhost:5000"),
            webhook_url=config.get("UDDOKTAPAY_WEBHOOK_URL"),
            timeout=config.get("HTTP_TIMEOUT", 10.0),
        )

    def _headers(self):
        return {
            API_KEY_HEADER: self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _post(self, path, payload):
        response = self.http.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        try:
            data = response.json()
        except ValueError:
            data = {}
        return response, data

    def create_payment(self, order_id, order_number, amount, customer_name, customer_email, metadata=None):
        payload = {
            "full_name": customer_name,
            "email": customer_email,
            "amount": str(amount),
            "metadata": {
                "order_id": order_id,
                "order_number": order_number,
                **(metadata or {}),
            },
            "redirect_url": f"{self.app_base_url}/payment/success",
            "cancel_url": f"{self.app_base_url}/payment/cancel",
            "webhook_url": self.webhook_url,
            # GET so the redirect carries invoice_id in the query string
            "return_type": "GET",
        }
        try:
            response, data = self._post("/api/checkout-v2", payload)
        except requests.RequestException as e:
            logger.error("UddoktaPay create payment error: %s", e)
            return {"success": False, "error": str(e) or "Failed to create payment"}

        if not response.ok or not data.get("status"):
            return {"success": False, "error": data.get("message") or "Failed to create payment"}

        return {"success": True, "payment_url": data.get("payment_url")}

    def verify_payment(self, invoice_id):
        try:
            response, data = self._post("/api/verify-payment", {"invoice_id": invoice_id})
        except requests.RequestException as e:
            logger.error("UddoktaPay verify payment error: %s", e)
            return {"success": False, "error": str(e) or "Failed to verify payment"}

        # Request-level failures come back as {"status": false, "message": ...};
        # a payment that failed is reported as status "ERROR".
        if not response.ok or data.get("status") in (False, None):
            return {"success": False, "error": data.get("message") or "Failed to verify payment"}

        provider_status = data.get("status")
        status = STATUS_MAP.get(provider_status, "PENDING")
        if provider_status not in STATUS_MAP:
            # Unrecognised statuses stay PENDING until the provider semantics are confirmed.
            logger.warning("Unknown UddoktaPay status %r for invoice %s", provider_status, invoice_id)

        return {
            "success": True,
            "status": status,
            "invoice_id": data.get("invoice_id"),
            "amount": data.get("amount"),
            "payment_method": data.get("payment_method"),
            "transaction_id": data.get("transaction_id"),
            "date": data.get("date"),
            "metadata": data.get("metadata") or {},
        }
