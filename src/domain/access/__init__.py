"""Channel membership and the access guard."""
