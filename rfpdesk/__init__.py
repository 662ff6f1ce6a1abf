"""rfpdesk: RFP response authoring core (documents, pricing, lifecycle, accounts)."""

__version__ = "0.1.0"
