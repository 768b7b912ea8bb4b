"""Email provider integrations."""

from membership_billing.integrations.email.plunk_client import EmailClientError, PlunkClient, get_plunk_client

__all__ = ["EmailClientError", "PlunkClient", "get_plunk_client"]
