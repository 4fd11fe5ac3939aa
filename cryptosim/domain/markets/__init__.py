"""Market sessions (big market), sub-markets and their trading cycles."""
