"""crmdesk - async data-access services for a hosted CRM record platform."""

__version__ = "0.1.0"
