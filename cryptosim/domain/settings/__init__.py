"""Platform settings and the admin IP whitelist."""
