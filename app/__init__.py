"""Users API: user records with globally unique contact addresses."""
