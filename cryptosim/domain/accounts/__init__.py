"""Accounts bounded context: traders, operator admins and their credentials."""
