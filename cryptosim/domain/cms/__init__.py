"""Marketing content shown on the public site."""
