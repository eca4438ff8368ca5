"""Users feature: accounts, login and role management."""
