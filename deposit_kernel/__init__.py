"""
Deposit Kernel - recording of out-of-band deposit payments

A synchronous, append-only payment plugin with:
- Per-tenant, per-currency minimum deposit amounts (fail-open)
- Distribution of one deposit across several invoices
- Immutable ledger of payment methods and transaction responses
"""

__version__ = "0.1.0"

# Identity under which the payment provider, the control hook and the HTTP
# routes are registered with the host, and the tenant-config key suffix.
PLUGIN_NAME = "deposit-plugin"
