"""Invoice queries, invoice actions and sign-in services."""
