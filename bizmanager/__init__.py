"""Multi-tenant authorization core: companies, roles, permissions."""
